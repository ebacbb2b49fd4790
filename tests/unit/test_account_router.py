"""Router tests: FastAPI app with mocked service, DB session and identity."""

import uuid
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.pf_account.api import router as account_api
from src.pf_account.application.schemas import (
    AccountListResponse,
    AccountResponse,
    CacheStatsResponse,
    CascadeDeleteResponse,
)
from src.pf_common.database import get_db_session
from src.pf_common.errors import AccountNotFoundError, AppError, PriceProviderError
from src.pf_common.response import app_error_handler
from src.pf_gateway.auth.dependencies import get_current_user_id
from src.pf_gateway.auth.jwt_handler import create_access_token
from src.pf_gateway.middleware.request_log import RequestLogMiddleware

ACCOUNT_ID = str(uuid.uuid4())


def _account_response(**overrides) -> AccountResponse:
    fields = {
        "id": ACCOUNT_ID,
        "name": "Checking",
        "color": "#3b82f6",
        "currency": "USD",
        "balance": 1500.0,
        "type": "normal",
        "display_order": 0,
    }
    fields.update(overrides)
    return AccountResponse(**fields)


def _build_app(authenticated: bool = True) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLogMiddleware)
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.include_router(account_api.router, prefix="/api/v1")
    app.include_router(account_api.investment_router, prefix="/api/v1")

    async def _db() -> AsyncIterator[AsyncMock]:
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _db
    if authenticated:
        app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    return app


@pytest.fixture
def service(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    svc = MagicMock()
    for name in (
        "list_accounts",
        "get_account",
        "create_account",
        "update_account",
        "update_investment",
        "delete_account",
        "delete_account_cascade",
        "reorder_accounts",
        "get_stock_price",
    ):
        setattr(svc, name, AsyncMock())
    monkeypatch.setattr(account_api, "_service", svc)
    return svc


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=_build_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestAccountsEndpoints:
    async def test_list(self, client: AsyncClient, service: MagicMock) -> None:
        service.list_accounts.return_value = AccountListResponse(
            items=[_account_response()], total=1
        )

        resp = await client.get("/api/v1/accounts")

        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["total"] == 1
        assert body["data"]["items"][0]["balance"] == 1500.0
        assert body["request_id"] == resp.headers["X-Request-ID"]
        assert service.list_accounts.await_args.args[1:] == ("user-1", False)

    async def test_create(self, client: AsyncClient, service: MagicMock) -> None:
        service.create_account.return_value = _account_response(balance=0.0)

        resp = await client.post(
            "/api/v1/accounts",
            json={"name": "Checking", "color": "#3b82f6", "currency": "USD"},
        )

        assert resp.status_code == 201
        req = service.create_account.await_args.args[2]
        assert req.name == "Checking"

    async def test_create_rejects_unknown_currency(
        self, client: AsyncClient, service: MagicMock
    ) -> None:
        resp = await client.post(
            "/api/v1/accounts",
            json={"name": "Checking", "color": "#3b82f6", "currency": "JPY"},
        )
        assert resp.status_code == 422
        service.create_account.assert_not_awaited()

    async def test_get_not_found_maps_to_envelope(
        self, client: AsyncClient, service: MagicMock
    ) -> None:
        service.get_account.side_effect = AccountNotFoundError(ACCOUNT_ID)

        resp = await client.get(f"/api/v1/accounts/{ACCOUNT_ID}")

        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == 2002
        assert body["data"] is None
        assert body["request_id"] == resp.headers["X-Request-ID"]

    async def test_non_uuid_id_rejected(self, client: AsyncClient, service: MagicMock) -> None:
        resp = await client.get("/api/v1/accounts/not-a-uuid")
        assert resp.status_code == 422
        service.get_account.assert_not_awaited()

    async def test_update_investment(self, client: AsyncClient, service: MagicMock) -> None:
        service.update_investment.return_value = _account_response(
            type="investment", stock_symbol="VOO", shares=12.0
        )

        resp = await client.patch(
            f"/api/v1/accounts/{ACCOUNT_ID}/investment", json={"shares": 12}
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["shares"] == 12.0

    async def test_delete(self, client: AsyncClient, service: MagicMock) -> None:
        resp = await client.delete(f"/api/v1/accounts/{ACCOUNT_ID}")

        assert resp.status_code == 200
        assert resp.json()["data"] == {"id": ACCOUNT_ID}
        service.delete_account.assert_awaited_once()

    async def test_cascade_delete(self, client: AsyncClient, service: MagicMock) -> None:
        service.delete_account_cascade.return_value = CascadeDeleteResponse(
            account="Checking", pockets=3, sub_pockets=3, movements=5
        )

        resp = await client.post(
            f"/api/v1/accounts/{ACCOUNT_ID}/cascade-delete", json={"delete_movements": False}
        )

        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "account": "Checking",
            "pockets": 3,
            "sub_pockets": 3,
            "movements": 5,
        }
        assert service.delete_account_cascade.await_args.args[1:] == (
            "user-1",
            ACCOUNT_ID,
            False,
        )

    async def test_reorder(self, client: AsyncClient, service: MagicMock) -> None:
        resp = await client.post("/api/v1/accounts/reorder", json={"account_ids": ["b", "a"]})

        assert resp.status_code == 200
        service.reorder_accounts.assert_awaited_once()
        assert service.reorder_accounts.await_args.args[1:] == ("user-1", ["b", "a"])


class TestInvestmentEndpoints:
    async def test_price_provider_failure_is_502(
        self, client: AsyncClient, service: MagicMock
    ) -> None:
        service.get_stock_price.side_effect = PriceProviderError("VOO", "rate limit")

        resp = await client.get("/api/v1/investments/prices/VOO")

        assert resp.status_code == 502
        assert resp.json()["code"] == 5001

    async def test_cache_stats(self, client: AsyncClient, service: MagicMock) -> None:
        service.cache_stats.return_value = CacheStatsResponse(local_cache_size=2)

        resp = await client.get("/api/v1/investments/cache-stats")

        assert resp.json()["data"] == {"local_cache_size": 2}


class TestAuthentication:
    async def test_missing_token_is_401(self, service: MagicMock) -> None:
        transport = ASGITransport(app=_build_app(authenticated=False))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.get("/api/v1/accounts")
        assert resp.status_code == 401
        service.list_accounts.assert_not_awaited()

    async def test_bearer_token_subject_is_user(self, service: MagicMock) -> None:
        service.list_accounts.return_value = AccountListResponse(items=[], total=0)
        token = create_access_token("user-77")

        transport = ASGITransport(app=_build_app(authenticated=False))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.get(
                "/api/v1/accounts", headers={"Authorization": f"Bearer {token}"}
            )

        assert resp.status_code == 200
        assert service.list_accounts.await_args.args[1] == "user-77"
