"""Domain models for pb_account — pure dataclasses, no storage dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    id: str
    name: str
    balance: float   # units of play-money, never negative
    created_at: datetime
