"""MarketRepository and BetRepository over the ledger store.

Stored shapes:
    markets:{id} -> {"id", "title", "description", "createdBy", "createdAt",
                     "endsAt", "resolved", "outcome", "yesPool", "noPool"}
    bets:{id}    -> {"id", "userId", "marketId", "amount", "position",
                     "oddsAtBet", "createdAt"}

"outcome" is JSON null until resolution so that "not set" and false stay
distinct. Bets are indexed under bets:market:{id} and bets:user:{id}.
delete_bet exists only to undo a half-written placement.
"""

import asyncio
from typing import Any

from src.pb_common.enums import Position
from src.pb_ledger import codec
from src.pb_ledger.domain.keys import (
    ALL_MARKETS,
    bet_key,
    market_bets_key,
    market_key,
    user_bets_key,
)
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_market.domain.models import Bet, Market

# ---------------------------------------------------------------------------
# Record codec
# ---------------------------------------------------------------------------


def market_to_record(m: Market) -> dict[str, Any]:
    return {
        "id": m.id,
        "title": m.title,
        "description": m.description,
        "createdBy": m.created_by,
        "createdAt": codec.ts_out(m.created_at),
        "endsAt": codec.ts_out(m.ends_at),
        "resolved": m.resolved,
        "outcome": m.outcome,
        "yesPool": m.yes_pool,
        "noPool": m.no_pool,
    }


def market_from_record(r: dict[str, Any]) -> Market:
    return Market(
        id=r["id"],
        title=r["title"],
        description=r["description"],
        created_by=r["createdBy"],
        created_at=codec.ts_in(r["createdAt"]),
        ends_at=codec.ts_in(r["endsAt"]),
        resolved=bool(r["resolved"]),
        outcome=r.get("outcome"),
        yes_pool=float(r["yesPool"]),
        no_pool=float(r["noPool"]),
    )


def bet_to_record(b: Bet) -> dict[str, Any]:
    return {
        "id": b.id,
        "userId": b.user_id,
        "marketId": b.market_id,
        "amount": b.amount,
        "position": b.position.value,
        "oddsAtBet": b.odds_at_bet,
        "createdAt": codec.ts_out(b.created_at),
    }


def bet_from_record(r: dict[str, Any]) -> Bet:
    return Bet(
        id=r["id"],
        user_id=r["userId"],
        market_id=r["marketId"],
        amount=float(r["amount"]),
        position=Position(r["position"]),
        odds_at_bet=float(r["oddsAtBet"]),
        created_at=codec.ts_in(r["createdAt"]),
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class MarketRepository:
    async def get_market(self, store: LedgerStoreProtocol, market_id: str) -> Market | None:
        key = market_key(market_id)
        raw = await store.get(key)
        if raw is None:
            return None
        return market_from_record(codec.loads(key, raw))

    async def list_markets(self, store: LedgerStoreProtocol) -> list[Market]:
        ids = await store.members_of(ALL_MARKETS)
        markets = await asyncio.gather(*(self.get_market(store, mid) for mid in ids))
        return [m for m in markets if m is not None]

    async def any_market_indexed(self, store: LedgerStoreProtocol) -> bool:
        return await store.exists(ALL_MARKETS)

    async def insert_market(self, store: LedgerStoreProtocol, market: Market) -> None:
        await self.save_market(store, market)
        await store.add_to_set(ALL_MARKETS, market.id)

    async def save_market(self, store: LedgerStoreProtocol, market: Market) -> None:
        await store.set(market_key(market.id), codec.dumps(market_to_record(market)))


class BetRepository:
    async def _load(self, store: LedgerStoreProtocol, bet_id: str) -> Bet | None:
        key = bet_key(bet_id)
        raw = await store.get(key)
        if raw is None:
            return None
        return bet_from_record(codec.loads(key, raw))

    async def _load_set(self, store: LedgerStoreProtocol, set_key: str) -> list[Bet]:
        ids = await store.members_of(set_key)
        bets = await asyncio.gather(*(self._load(store, bid) for bid in ids))
        return [b for b in bets if b is not None]

    async def insert_bet(self, store: LedgerStoreProtocol, bet: Bet) -> None:
        await store.set(bet_key(bet.id), codec.dumps(bet_to_record(bet)))
        await store.add_to_set(market_bets_key(bet.market_id), bet.id)
        await store.add_to_set(user_bets_key(bet.user_id), bet.id)

    async def delete_bet(self, store: LedgerStoreProtocol, bet: Bet) -> None:
        await store.remove_from_set(user_bets_key(bet.user_id), bet.id)
        await store.remove_from_set(market_bets_key(bet.market_id), bet.id)
        await store.delete(bet_key(bet.id))

    async def list_market_bets(self, store: LedgerStoreProtocol, market_id: str) -> list[Bet]:
        return await self._load_set(store, market_bets_key(market_id))

    async def list_user_bets(self, store: LedgerStoreProtocol, user_id: str) -> list[Bet]:
        return await self._load_set(store, user_bets_key(user_id))
