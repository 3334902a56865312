"""Selects the MarketRepositoryProtocol implementation from settings.STORE_BACKEND."""

from functools import lru_cache

from config.settings import settings
from src.pp_common.enums import StoreBackend
from src.pp_market.domain.repository import MarketRepositoryProtocol
from src.pp_market.infrastructure.memory import InMemoryMarketRepository
from src.pp_market.infrastructure.persistence import MarketRepository


@lru_cache(maxsize=1)
def _memory_repository() -> InMemoryMarketRepository:
    # One shared store per process so every service sees the same rows.
    return InMemoryMarketRepository()


def build_market_repository() -> MarketRepositoryProtocol:
    if StoreBackend(settings.STORE_BACKEND) == StoreBackend.MEMORY:
        return _memory_repository()
    return MarketRepository()
