"""MarketEngine — market lifecycle, pool accounting, stakes and settlement.

The engine is the only writer of Market pools/resolved/outcome and of Bet
records; balances move only through AccountService.

Concurrency: place_bet and resolve_market hold the market's entity lock for
their whole load/modify/store phase. A stake's debit takes the user's lock
inside it; resolution holds every winner's lock, in sorted id order, until
the resolved market is stored (market before user, never the reverse).

Consistency: every domain check runs before the first write. If a store
write fails after the debit (or after the first payout credit), the writes
already made by that call are compensated before the error propagates.
"""

import logging
import math
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from config.settings import settings
from src.pb_account.application.service import AccountService
from src.pb_common.datetime_utils import parse_timestamp, utc_now
from src.pb_common.enums import Position
from src.pb_common.errors import (
    InsufficientFundsError,
    InvalidAmountError,
    MarketAlreadyResolvedError,
    MarketNotFoundError,
    MarketResolvedError,
    UserNotFoundError,
    ValidationFailedError,
)
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_ledger.locking import MARKET, USER, entity_lock, entity_locks
from src.pb_market.domain.models import Bet, BetPlacement, Market
from src.pb_market.domain.repository import BetRepositoryProtocol, MarketRepositoryProtocol
from src.pb_market.domain.settlement import apply_stake, compute_payouts
from src.pb_market.infrastructure.persistence import BetRepository, MarketRepository

logger = logging.getLogger(__name__)

DEFAULT_MARKET_TITLE = "Will this group place its first bet this week?"
DEFAULT_MARKET_DESCRIPTION = (
    "Resolves YES if any member stakes on any market within seven days of launch."
)
DEFAULT_MARKET_DAYS = 30
SYSTEM_CREATOR = "system"


def _require_text(field: str, value: str | None) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationFailedError(f"{field} must not be empty")
    return value


def _parse_ends_at(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        return parse_timestamp(_require_text("ends_at", value))
    except ValueError as e:
        raise ValidationFailedError(f"ends_at is not a timestamp: {value!r}") from e


class MarketEngine:
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

    @property
    def seed(self) -> float:
        return self._seed

    # ------------------------------------------------------------------
    # Lifecycle: create / read
    # ------------------------------------------------------------------

    async def create_market(
        self,
        store: LedgerStoreProtocol,
        title: str,
        description: str,
        ends_at: str | datetime,
        created_by: str,
    ) -> Market:
        """Open a market with both pools seeded. Past end times are accepted."""
        market = Market(
            id=str(uuid.uuid4()),
            title=_require_text("title", title),
            description=_require_text("description", description),
            created_by=_require_text("created_by", created_by),
            created_at=utc_now(),
            ends_at=_parse_ends_at(ends_at),
            resolved=False,
            outcome=None,
            yes_pool=self._seed,
            no_pool=self._seed,
        )
        await self._markets.insert_market(store, market)
        logger.info("Market created: id=%s title=%r by=%s", market.id, market.title, market.created_by)
        return market

    async def ensure_default_market(self, store: LedgerStoreProtocol) -> Market | None:
        """Create a starter market when the market index has never been written."""
        async with entity_lock(store, MARKET, "default"):
            if await self._markets.any_market_indexed(store):
                return None
            return await self.create_market(
                store,
                title=DEFAULT_MARKET_TITLE,
                description=DEFAULT_MARKET_DESCRIPTION,
                ends_at=utc_now() + timedelta(days=DEFAULT_MARKET_DAYS),
                created_by=SYSTEM_CREATOR,
            )

    async def get_market(self, store: LedgerStoreProtocol, market_id: str) -> Market:
        market = await self._markets.get_market(store, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def list_markets(self, store: LedgerStoreProtocol) -> list[Market]:
        """All markets, newest first."""
        markets = await self._markets.list_markets(store)
        return sorted(markets, key=lambda m: (m.created_at, m.id), reverse=True)

    # ------------------------------------------------------------------
    # Stake
    # ------------------------------------------------------------------

    async def place_bet(
        self,
        store: LedgerStoreProtocol,
        user_id: str,
        market_id: str,
        amount: float,
        position: Position | str,
    ) -> BetPlacement:
        try:
            position = Position(position)
        except ValueError as e:
            raise ValidationFailedError(f"position must be 'yes' or 'no', got {position!r}") from e

        async with entity_lock(store, MARKET, market_id):
            user = await self._accounts.get_user(store, user_id)
            market = await self.get_market(store, market_id)
            if market.resolved:
                raise MarketResolvedError(market_id)
            if not (math.isfinite(amount) and amount > 0):
                raise InvalidAmountError(amount)
            if amount > user.balance:
                raise InsufficientFundsError(required=amount, available=user.balance)

            before = replace(market)
            user = await self._accounts.debit(store, user_id, amount)

            bet: Bet | None = None
            try:
                odds = apply_stake(market, position, amount)
                bet = Bet(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    market_id=market_id,
                    amount=amount,
                    position=position,
                    odds_at_bet=odds,
                    created_at=utc_now(),
                )
                await self._markets.save_market(store, market)
                await self._bets.insert_bet(store, bet)
            except Exception:
                await self._undo_placement(store, before, bet, user_id, amount)
                raise

        logger.info(
            "Bet placed: bet=%s user=%s market=%s %s %g odds=%.4f pools=%g/%g",
            bet.id, user_id, market_id, position.value, amount, bet.odds_at_bet,
            market.yes_pool, market.no_pool,
        )
        return BetPlacement(bet=bet, user=user, market=market)

    async def _undo_placement(
        self,
        store: LedgerStoreProtocol,
        before: Market,
        bet: Bet | None,
        user_id: str,
        amount: float,
    ) -> None:
        """Compensate a half-written stake; failures here are logged, the original error wins."""
        logger.warning("Rolling back stake: user=%s market=%s amount=%g", user_id, before.id, amount)
        steps = [("restore market", lambda: self._markets.save_market(store, before))]
        if bet is not None:
            steps.append(("remove bet", lambda: self._bets.delete_bet(store, bet)))
        steps.append(("refund stake", lambda: self._accounts.credit(store, user_id, amount)))
        for label, step in steps:
            try:
                await step()
            except Exception:
                logger.exception("Rollback step failed (%s): user=%s market=%s", label, user_id, before.id)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    async def resolve_market(
        self, store: LedgerStoreProtocol, market_id: str, outcome: bool
    ) -> Market:
        """Freeze the outcome and credit every winner.

        Winners' user locks are taken (sorted by id) after the market lock and
        held until the market record is written, so a payout cannot be spent
        elsewhere while it might still be reversed.
        """
        if not isinstance(outcome, bool):
            raise ValidationFailedError(f"outcome must be a boolean, got {outcome!r}")

        async with entity_lock(store, MARKET, market_id):
            market = await self.get_market(store, market_id)
            if market.resolved:
                raise MarketAlreadyResolvedError(market_id)

            market.resolved = True
            market.outcome = outcome
            bets = await self._bets.list_market_bets(store, market_id)
            payouts = compute_payouts(market, bets)
            if not payouts:
                logger.info("Market %s: no winning stakes, nothing to pay out", market_id)

            credited: list[tuple[str, float]] = []
            async with entity_locks(store, USER, payouts):
                try:
                    for user_id in sorted(payouts):
                        payout = payouts[user_id]
                        try:
                            await self._accounts.adjust_locked(store, user_id, payout)
                        except UserNotFoundError:
                            logger.warning(
                                "Payout skipped, user deleted: user=%s market=%s", user_id, market_id
                            )
                            continue
                        credited.append((user_id, payout))
                    await self._markets.save_market(store, market)
                except Exception:
                    await self._reverse_payouts(store, market_id, credited)
                    raise

        logger.info(
            "Market resolved: id=%s outcome=%s total_pool=%g paid=%g to %d users",
            market_id, "yes" if outcome else "no", market.total_pool,
            sum(p for _, p in credited), len(credited),
        )
        return market

    async def _reverse_payouts(
        self, store: LedgerStoreProtocol, market_id: str, credited: list[tuple[str, float]]
    ) -> None:
        """Take back credits already applied; the winners' locks are still held."""
        logger.warning("Rolling back %d payouts for market %s", len(credited), market_id)
        for user_id, payout in credited:
            try:
                await self._accounts.adjust_locked(store, user_id, -payout)
            except Exception:
                logger.exception("Payout reversal failed: user=%s market=%s amount=%g", user_id, market_id, payout)
