"""pb_market REST endpoints.

POST /markets                         — create market
GET  /markets                         — list (newest first)
GET  /markets/{market_id}             — detail
POST /markets/{market_id}/bets        — place a stake
GET  /markets/{market_id}/bets        — bet history with display names
POST /markets/{market_id}/resolve     — declare outcome and settle
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from src.pb_common.response import ApiResponse, request_response
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_ledger.factory import get_ledger_store
from src.pb_market.application.query import QueryService
from src.pb_market.application.schemas import (
    BetPlacementOut,
    CreateMarketRequest,
    MarketOut,
    PlaceBetRequest,
    ResolveRequest,
)
from src.pb_market.application.service import MarketEngine

router = APIRouter(prefix="/markets", tags=["markets"])

_engine = MarketEngine()
_query = QueryService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    market = await _engine.create_market(
        store, body.title, body.description, body.ends_at, body.created_by
    )
    return request_response(request, MarketOut.from_domain(market).model_dump(), "Market created")


@router.get("")
async def list_markets(
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    markets = await _engine.list_markets(store)
    return request_response(request, [MarketOut.from_domain(m).model_dump() for m in markets])


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    market = await _engine.get_market(store, market_id)
    return request_response(request, MarketOut.from_domain(market).model_dump())


@router.post("/{market_id}/bets", status_code=status.HTTP_201_CREATED)
async def place_bet(
    market_id: str,
    body: PlaceBetRequest,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    placement = await _engine.place_bet(
        store, body.user_id, market_id, body.amount, body.position
    )
    return request_response(
        request, BetPlacementOut.from_domain(placement).model_dump(mode="json"), "Bet placed"
    )


@router.get("/{market_id}/bets")
async def list_market_bets(
    market_id: str,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    bets = await _query.list_market_bets(store, market_id)
    return request_response(request, [b.model_dump(mode="json") for b in bets])


@router.post("/{market_id}/resolve")
async def resolve_market(
    market_id: str,
    body: ResolveRequest,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    market = await _engine.resolve_market(store, market_id, body.outcome)
    return request_response(request, MarketOut.from_domain(market).model_dump(), "Market resolved")
