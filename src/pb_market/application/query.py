"""QueryService — read-only projections for the presentation layer.

Nothing here writes to the ledger store.
"""

from src.pb_account.application.service import AccountService
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_market.application.schemas import BetOut, MarketBetOut
from src.pb_market.domain.repository import BetRepositoryProtocol
from src.pb_market.infrastructure.persistence import BetRepository

UNKNOWN_USER = "Unknown"


class QueryService:
    def __init__(
        self,
        accounts: AccountService | None = None,
        bets: BetRepositoryProtocol | None = None,
    ) -> None:
        self._accounts = accounts or AccountService()
        self._bets: BetRepositoryProtocol = bets or BetRepository()

    async def list_market_bets(
        self, store: LedgerStoreProtocol, market_id: str
    ) -> list[MarketBetOut]:
        """Bets on a market, newest first, with the bettor's display name.

        Bettors that no longer exist render as "Unknown". An unknown market
        simply has no bets.
        """
        bets = await self._bets.list_market_bets(store, market_id)
        names = {u.id: u.name for u in await self._accounts.list_users(store)}
        bets.sort(key=lambda b: (b.created_at, b.id), reverse=True)
        return [
            MarketBetOut.from_domain(b, user_name=names.get(b.user_id, UNKNOWN_USER))
            for b in bets
        ]

    async def list_user_bets(self, store: LedgerStoreProtocol, user_id: str) -> list[BetOut]:
        """A user's bets across all markets, newest first."""
        bets = await self._bets.list_user_bets(store, user_id)
        bets.sort(key=lambda b: (b.created_at, b.id), reverse=True)
        return [BetOut.from_domain(b) for b in bets]
