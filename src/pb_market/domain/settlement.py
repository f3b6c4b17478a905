"""Parimutuel settlement — pure functions over Market and Bet.

Winners split the total pool (both sides, seeds included) in proportion to
their stake's share of the winning pool:

    payout(bet) = bet.amount / winning_pool * total_pool

The seed sitting in the winning pool has no bettor, so its share of the
total is not paid to anyone. Losing stakes are forfeit.
"""

from src.pb_common.enums import Position
from src.pb_market.domain.models import Bet, Market


def apply_stake(market: Market, position: Position, amount: float) -> float:
    """Add a stake to its pool and return the yes-odds AFTER the stake."""
    if position is Position.YES:
        market.yes_pool += amount
    else:
        market.no_pool += amount
    return market.yes_probability


def compute_payouts(market: Market, bets: list[Bet]) -> dict[str, float]:
    """Payout per user_id for a market whose outcome is set.

    Multiple winning bets by one user are summed. Returns {} when the winning
    pool is empty.
    """
    if market.outcome is None:
        raise ValueError(f"market {market.id} has no outcome")

    winning = Position.for_outcome(market.outcome)
    winning_pool = market.pool_for(winning)
    total_pool = market.total_pool
    if winning_pool <= 0:
        return {}

    payouts: dict[str, float] = {}
    for bet in bets:
        if bet.market_id != market.id or bet.position is not winning:
            continue
        share = bet.amount / winning_pool
        payouts[bet.user_id] = payouts.get(bet.user_id, 0.0) + share * total_pool
    return payouts
