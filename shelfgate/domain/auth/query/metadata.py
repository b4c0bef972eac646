"""Service-provider metadata query."""

from dataclasses import dataclass

from shelfgate.domain.auth.command.login import resolve_strategy
from shelfgate.domain.auth.port.provider_registry import ProviderRegistry
from shelfgate.domain.shared.query import Query, QueryHandler, Result


class GetMetadata(Query):
    idp_code: str


class GetMetadataResult(Result):
    metadata: str  # Signed SP metadata XML


@dataclass
class GetMetadataHandler(QueryHandler[GetMetadata, GetMetadataResult]):
    provider_registry: ProviderRegistry

    async def run(self, query: GetMetadata) -> GetMetadataResult:
        strategy = resolve_strategy(self.provider_registry, query.idp_code)
        return GetMetadataResult(metadata=strategy.get_metadata())
