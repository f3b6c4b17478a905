"""Global enums — values are the literals stored in ledger records."""

from enum import Enum


class Position(str, Enum):
    YES = "yes"
    NO = "no"

    @classmethod
    def for_outcome(cls, outcome: bool) -> "Position":
        return cls.YES if outcome else cls.NO


class StoreBackend(str, Enum):
    REDIS = "redis"
    FILE = "file"
