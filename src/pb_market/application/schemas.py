"""Pydantic schemas for pb_market API requests and responses."""

from pydantic import BaseModel, Field

from src.pb_account.application.schemas import UserOut
from src.pb_common.enums import Position
from src.pb_market.domain.models import Bet, BetPlacement, Market

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=2000)
    ends_at: str = Field(..., description="ISO-8601 timestamp; past values are accepted")
    created_by: str = Field(..., max_length=64)


class PlaceBetRequest(BaseModel):
    user_id: str
    amount: float = Field(..., allow_inf_nan=False, description="Stake in units; must be positive")
    position: Position


class ResolveRequest(BaseModel):
    outcome: bool


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------


class MarketOut(BaseModel):
    id: str
    title: str
    description: str
    created_by: str
    created_at: str
    ends_at: str
    resolved: bool
    outcome: bool | None
    yes_pool: float
    no_pool: float
    total_pool: float
    yes_probability: float

    @classmethod
    def from_domain(cls, m: Market) -> "MarketOut":
        return cls(
            id=m.id,
            title=m.title,
            description=m.description,
            created_by=m.created_by,
            created_at=m.created_at.isoformat(),
            ends_at=m.ends_at.isoformat(),
            resolved=m.resolved,
            outcome=m.outcome,
            yes_pool=m.yes_pool,
            no_pool=m.no_pool,
            total_pool=m.total_pool,
            yes_probability=m.yes_probability,
        )


# ---------------------------------------------------------------------------
# Bets
# ---------------------------------------------------------------------------


class BetOut(BaseModel):
    id: str
    user_id: str
    market_id: str
    amount: float
    position: Position
    odds_at_bet: float
    created_at: str

    @classmethod
    def from_domain(cls, b: Bet) -> "BetOut":
        return cls(
            id=b.id,
            user_id=b.user_id,
            market_id=b.market_id,
            amount=b.amount,
            position=b.position,
            odds_at_bet=b.odds_at_bet,
            created_at=b.created_at.isoformat(),
        )


class MarketBetOut(BetOut):
    user_name: str

    @classmethod
    def from_domain(cls, b: Bet, user_name: str) -> "MarketBetOut":  # type: ignore[override]
        return cls(user_name=user_name, **BetOut.from_domain(b).model_dump())


class BetPlacementOut(BaseModel):
    bet: BetOut
    user: UserOut
    market: MarketOut

    @classmethod
    def from_domain(cls, p: BetPlacement) -> "BetPlacementOut":
        return cls(
            bet=BetOut.from_domain(p.bet),
            user=UserOut.from_domain(p.user),
            market=MarketOut.from_domain(p.market),
        )
