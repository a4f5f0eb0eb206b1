from fastapi import Request

from indexing_gateway.main.container.container import Container


def get_container(request: Request) -> Container:
    """The application's container, created once at startup and kept on ``app.state``."""
    return request.app.state.container
