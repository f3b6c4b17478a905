"""Pydantic schemas for pb_account API."""

from pydantic import BaseModel, Field

from src.pb_account.domain.models import User

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateUserRequest(BaseModel):
    name: str = Field(..., max_length=64, description="Display name; case-insensitive identity")


class AddBalanceRequest(BaseModel):
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Units to credit")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class UserOut(BaseModel):
    id: str
    name: str
    balance: float
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, u: User) -> "UserOut":
        return cls(
            id=u.id,
            name=u.name,
            balance=u.balance,
            created_at=u.created_at.isoformat(),
        )


class LeaderboardEntry(UserOut):
    rank: int


class DeleteUserResponse(BaseModel):
    user_id: str
    deleted: bool
