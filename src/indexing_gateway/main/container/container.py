from dependency_injector import containers, providers

from indexing_gateway.indexing.application.batch_dispatcher import BatchDispatcher
from indexing_gateway.indexing.application.indexing_service import IndexingService
from indexing_gateway.indexing.application.status_query import StatusQuery
from indexing_gateway.indexing.application.submission_engine import SubmissionEngine
from indexing_gateway.indexing.infrastructure.client_cache import ClientCache
from indexing_gateway.indexing.infrastructure.client_factory import ClientFactory
from indexing_gateway.main.config import get_settings


class Container(containers.DeclarativeContainer):
    settings = providers.Callable(get_settings)

    # One cache per application instance, shared by every request
    client_factory = providers.Singleton(
        ClientFactory,
        api_base_url=settings.provided.indexing_api_base_url,
        scopes=providers.List(settings.provided.indexing_scope),
    )
    client_cache = providers.Singleton(ClientCache, factory=client_factory)

    # Services
    submission_engine = providers.Factory(SubmissionEngine, client_cache=client_cache)
    batch_dispatcher = providers.Factory(
        BatchDispatcher,
        submission_engine=submission_engine,
        max_batch_size=settings.provided.max_batch_size,
    )
    status_query = providers.Factory(StatusQuery, client_cache=client_cache)
    indexing_service = providers.Factory(
        IndexingService,
        client_cache=client_cache,
        submission_engine=submission_engine,
        batch_dispatcher=batch_dispatcher,
        status_query=status_query,
    )
