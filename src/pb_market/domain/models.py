"""Domain models for pb_market — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.pb_account.domain.models import User
from src.pb_common.enums import Position


@dataclass
class Market:
    id: str
    title: str
    description: str
    created_by: str
    created_at: datetime
    ends_at: datetime
    resolved: bool
    outcome: bool | None     # None until resolved, then frozen
    yes_pool: float          # seed + all yes stakes
    no_pool: float           # seed + all no stakes

    @property
    def total_pool(self) -> float:
        return self.yes_pool + self.no_pool

    @property
    def yes_probability(self) -> float:
        return self.yes_pool / self.total_pool

    def pool_for(self, position: Position) -> float:
        return self.yes_pool if position is Position.YES else self.no_pool


@dataclass
class Bet:
    id: str
    user_id: str
    market_id: str
    amount: float
    position: Position
    odds_at_bet: float       # yes_pool / total_pool right after this stake landed
    created_at: datetime


@dataclass
class BetPlacement:
    """Result of a successful stake: the new bet and both updated records."""

    bet: Bet
    user: User
    market: Market
