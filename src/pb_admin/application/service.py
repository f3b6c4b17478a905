# src/pb_admin/application/service.py
"""Admin application service — ledger audit."""
import logging

from config.settings import settings
from src.pb_account.application.service import AccountService
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_market.domain.invariants import verify_market_pools
from src.pb_market.domain.repository import BetRepositoryProtocol, MarketRepositoryProtocol
from src.pb_market.infrastructure.persistence import BetRepository, MarketRepository

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(
        self,
        accounts: AccountService | None = None,
        markets: MarketRepositoryProtocol | None = None,
        bets: BetRepositoryProtocol | None = None,
        seed: float | None = None,
    ) -> None:
        self._accounts = accounts or AccountService()
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._bets: BetRepositoryProtocol = bets or BetRepository()
        self._seed = seed if seed is not None else settings.MARKET_SEED

    async def verify_all_invariants(self, store: LedgerStoreProtocol) -> dict[str, object]:
        """Run per-market pool checks (INV-POOL/INV-STATE) and the balance floor (INV-BAL)."""
        violations: list[str] = []
        markets = await self._markets.list_markets(store)
        for market in markets:
            bets = await self._bets.list_market_bets(store, market.id)
            violations.extend(verify_market_pools(market, bets, self._seed))

        users = await self._accounts.list_users(store)
        for user in users:
            if user.balance < 0:
                violations.append(f"INV-BAL violated: user={user.id} balance={user.balance:g}")

        for v in violations:
            logger.error(v)
        return {
            "ok": len(violations) == 0,
            "markets_checked": len(markets),
            "users_checked": len(users),
            "violations": violations,
        }
