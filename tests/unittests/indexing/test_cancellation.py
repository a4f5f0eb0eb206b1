import time

import pytest

from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.main.exceptions import SubmissionCancelled


def test_token_without_deadline_never_expires():
    token = CancellationToken()

    assert not token.cancelled
    assert token.remaining() is None
    token.raise_if_cancelled()


def test_cancel_is_observed():
    token = CancellationToken.with_timeout(60)
    token.cancel()

    assert token.cancelled
    with pytest.raises(SubmissionCancelled, match="cancelled"):
        token.raise_if_cancelled()


def test_passed_deadline_cancels():
    token = CancellationToken(deadline=time.monotonic() - 1)

    assert token.cancelled
    assert token.remaining() == 0.0
    with pytest.raises(SubmissionCancelled, match="deadline exceeded"):
        token.raise_if_cancelled()


def test_remaining_is_bounded_by_timeout():
    token = CancellationToken.with_timeout(10)

    assert 0 < token.remaining() <= 10
