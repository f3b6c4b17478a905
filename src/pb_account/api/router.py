"""pb_account REST endpoints.

POST   /users                    — create user / login by name
GET    /users                    — leaderboard (all users, richest first)
GET    /users/lookup?name=       — user by display name
GET    /users/{user_id}          — user by id
DELETE /users/{user_id}          — delete user (bets are kept)
POST   /users/{user_id}/balance  — add balance
GET    /users/{user_id}/bets     — the user's bet history
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.pb_account.application.schemas import (
    AddBalanceRequest,
    CreateUserRequest,
    DeleteUserResponse,
    LeaderboardEntry,
    UserOut,
)
from src.pb_account.application.service import AccountService
from src.pb_common.response import ApiResponse, request_response
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_ledger.factory import get_ledger_store
from src.pb_market.application.query import QueryService

router = APIRouter(prefix="/users", tags=["users"])

_service = AccountService()
_query = QueryService(accounts=_service)


@router.post("")
async def create_user(
    body: CreateUserRequest,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    user = await _service.create_user(store, body.name)
    return request_response(request, UserOut.from_domain(user).model_dump())


@router.get("")
async def list_users(
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    users = await _service.list_users(store)
    items = [
        LeaderboardEntry(rank=i, **UserOut.from_domain(u).model_dump()).model_dump()
        for i, u in enumerate(users, start=1)
    ]
    return request_response(request, items)


@router.get("/lookup")
async def get_user_by_name(
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
    name: str = Query(..., min_length=1),
) -> ApiResponse:
    user = await _service.get_user_by_name(store, name)
    return request_response(request, UserOut.from_domain(user).model_dump())


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    user = await _service.get_user(store, user_id)
    return request_response(request, UserOut.from_domain(user).model_dump())


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    deleted = await _service.delete_user(store, user_id)
    data = DeleteUserResponse(user_id=user_id, deleted=deleted)
    return request_response(request, data.model_dump(), message="User deleted")


@router.post("/{user_id}/balance")
async def add_balance(
    user_id: str,
    body: AddBalanceRequest,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    user = await _service.add_balance(store, user_id, body.amount)
    return request_response(request, UserOut.from_domain(user).model_dump())


@router.get("/{user_id}/bets")
async def list_user_bets(
    user_id: str,
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    bets = await _query.list_user_bets(store, user_id)
    return request_response(request, [b.model_dump(mode="json") for b in bets])
