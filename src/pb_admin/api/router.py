# src/pb_admin/api/router.py
"""Admin REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pb_admin.application.service import AdminService
from src.pb_common.response import ApiResponse, request_response
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_ledger.factory import get_ledger_store

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.get("/invariants")
async def verify_invariants(
    request: Request,
    store: Annotated[LedgerStoreProtocol, Depends(get_ledger_store)],
) -> ApiResponse:
    result = await _service.verify_all_invariants(store)
    return request_response(request, result)
