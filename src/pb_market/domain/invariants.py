"""Market pool invariant verification."""

import logging

from src.pb_common.enums import Position
from src.pb_market.domain.models import Bet, Market

logger = logging.getLogger(__name__)

POOL_TOLERANCE = 1e-6


def verify_market_pools(market: Market, bets: list[Bet], seed: float) -> list[str]:
    """Check INV-POOL: yes_pool + no_pool == 2 * seed + sum(bet amounts).

    Also checks each side separately. Returns a list of violation strings.
    """
    violations: list[str] = []
    yes_staked = sum(b.amount for b in bets if b.position is Position.YES)
    no_staked = sum(b.amount for b in bets if b.position is Position.NO)

    if abs(market.yes_pool - (seed + yes_staked)) > POOL_TOLERANCE:
        violations.append(
            f"INV-POOL violated: market={market.id} yes_pool={market.yes_pool:g} "
            f"!= seed({seed:g}) + yes_stakes({yes_staked:g})"
        )
    if abs(market.no_pool - (seed + no_staked)) > POOL_TOLERANCE:
        violations.append(
            f"INV-POOL violated: market={market.id} no_pool={market.no_pool:g} "
            f"!= seed({seed:g}) + no_stakes({no_staked:g})"
        )
    if market.resolved and market.outcome is None:
        violations.append(f"INV-STATE violated: market={market.id} resolved without outcome")
    if not market.resolved and market.outcome is not None:
        violations.append(f"INV-STATE violated: market={market.id} open with outcome set")

    if not violations:
        logger.debug("Invariants OK: market=%s, total_pool=%g", market.id, market.total_pool)
    return violations
