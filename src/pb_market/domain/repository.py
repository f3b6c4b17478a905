# src/pb_market/domain/repository.py
"""Repository Protocols — dependency inversion for testability.

Unit tests inject a mock that conforms to these Protocols.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_market.domain.models import Bet, Market


class MarketRepositoryProtocol(Protocol):
    async def get_market(
        self, store: LedgerStoreProtocol, market_id: str
    ) -> Market | None: ...

    async def list_markets(self, store: LedgerStoreProtocol) -> list[Market]: ...

    async def any_market_indexed(self, store: LedgerStoreProtocol) -> bool: ...

    async def insert_market(self, store: LedgerStoreProtocol, market: Market) -> None: ...

    async def save_market(self, store: LedgerStoreProtocol, market: Market) -> None: ...


class BetRepositoryProtocol(Protocol):
    async def insert_bet(self, store: LedgerStoreProtocol, bet: Bet) -> None: ...

    async def delete_bet(self, store: LedgerStoreProtocol, bet: Bet) -> None: ...

    async def list_market_bets(
        self, store: LedgerStoreProtocol, market_id: str
    ) -> list[Bet]: ...

    async def list_user_bets(
        self, store: LedgerStoreProtocol, user_id: str
    ) -> list[Bet]: ...
