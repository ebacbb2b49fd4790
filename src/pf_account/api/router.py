"""pf_account REST API: account and stock price endpoints, all require JWT."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_account.application.price_cache import PriceCache
from src.pf_account.application.schemas import (
    CascadeDeleteRequest,
    CreateAccountRequest,
    ReorderAccountsRequest,
    UpdateAccountRequest,
    UpdateInvestmentRequest,
)
from src.pf_account.application.service import AccountApplicationService
from src.pf_common.database import get_db_session
from src.pf_common.response import ApiResponse, success_response
from src.pf_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/accounts", tags=["accounts"])
investment_router = APIRouter(prefix="/investments", tags=["investments"])

# One process-wide price cache shared by every request
_price_cache = PriceCache()
_service = AccountApplicationService(price_cache=_price_cache)

UserId = Annotated[str, Depends(get_current_user_id)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


def _wrap(data: object, request: Request) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("")
async def list_accounts(
    user_id: UserId,
    db: Db,
    request: Request,
    skip_investment_prices: bool = Query(False, description="Keep stored investment balances"),
) -> ApiResponse:
    data = await _service.list_accounts(db, user_id, skip_investment_prices)
    return _wrap(data.model_dump(), request)


@router.post("", status_code=201)
async def create_account(
    body: CreateAccountRequest, user_id: UserId, db: Db, request: Request
) -> ApiResponse:
    data = await _service.create_account(db, user_id, body)
    return _wrap(data.model_dump(), request)


# Declared before /{account_id} routes so "reorder" is never parsed as an id
@router.post("/reorder")
async def reorder_accounts(
    body: ReorderAccountsRequest, user_id: UserId, db: Db, request: Request
) -> ApiResponse:
    await _service.reorder_accounts(db, user_id, body.account_ids)
    return _wrap({"account_ids": body.account_ids}, request)


@router.get("/{account_id}")
async def get_account(
    account_id: Annotated[uuid.UUID, Path()],
    user_id: UserId,
    db: Db,
    request: Request,
    skip_investment_price: bool = Query(False),
) -> ApiResponse:
    data = await _service.get_account(db, user_id, str(account_id), skip_investment_price)
    return _wrap(data.model_dump(), request)


@router.patch("/{account_id}")
async def update_account(
    account_id: Annotated[uuid.UUID, Path()],
    body: UpdateAccountRequest,
    user_id: UserId,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _service.update_account(db, user_id, str(account_id), body)
    return _wrap(data.model_dump(), request)


@router.patch("/{account_id}/investment")
async def update_investment(
    account_id: Annotated[uuid.UUID, Path()],
    body: UpdateInvestmentRequest,
    user_id: UserId,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _service.update_investment(db, user_id, str(account_id), body)
    return _wrap(data.model_dump(), request)


@router.delete("/{account_id}")
async def delete_account(
    account_id: Annotated[uuid.UUID, Path()], user_id: UserId, db: Db, request: Request
) -> ApiResponse:
    await _service.delete_account(db, user_id, str(account_id))
    return _wrap({"id": str(account_id)}, request)


@router.post("/{account_id}/cascade-delete")
async def cascade_delete_account(
    account_id: Annotated[uuid.UUID, Path()],
    body: CascadeDeleteRequest,
    user_id: UserId,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _service.delete_account_cascade(
        db, user_id, str(account_id), body.delete_movements
    )
    return _wrap(data.model_dump(), request)


@investment_router.get("/prices/{symbol}")
async def get_stock_price(
    symbol: Annotated[str, Path(max_length=10)], user_id: UserId, db: Db, request: Request
) -> ApiResponse:
    data = await _service.get_stock_price(db, symbol)
    return _wrap(data.model_dump(), request)


@investment_router.get("/cache-stats")
async def cache_stats(user_id: UserId, request: Request) -> ApiResponse:
    return _wrap(_service.cache_stats().model_dump(), request)
