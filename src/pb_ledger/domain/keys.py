"""Key layout shared by every store backend."""

ALL_USERS = "users:all"
ALL_MARKETS = "markets:all"


def user_key(user_id: str) -> str:
    return f"users:{user_id}"


def user_name_key(name: str) -> str:
    """Name index entry — names compare trimmed and case-insensitively."""
    return f"users:byName:{name.strip().lower()}"


def market_key(market_id: str) -> str:
    return f"markets:{market_id}"


def bet_key(bet_id: str) -> str:
    return f"bets:{bet_id}"


def market_bets_key(market_id: str) -> str:
    return f"bets:market:{market_id}"


def user_bets_key(user_id: str) -> str:
    return f"bets:user:{user_id}"


def lock_name(kind: str, entity_id: str) -> str:
    return f"{kind}:{entity_id}"
