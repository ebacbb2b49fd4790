"""Pydantic schemas for pf_account API.

Request schemas only check shapes and types. Domain rules (color format,
symbol format, CD ranges...) are enforced by the Account entity itself so
that every entry point shares one validation gate.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.pf_account.application.cascade import CascadeDeleteResult
from src.pf_account.domain.models import Account
from src.pf_account.domain.stock_price import StockPrice
from src.pf_common.enums import AccountType, CompoundingFrequency, Currency

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateAccountRequest(BaseModel):
    name: str = Field(..., max_length=100)
    color: str = Field(..., max_length=7, description="Hex color like #3b82f6")
    currency: Currency
    type: AccountType = AccountType.NORMAL
    stock_symbol: str | None = Field(None, max_length=5)
    invested_amount: float | None = None
    shares: float | None = None
    # CD only
    principal: float | None = None
    interest_rate: float | None = None
    term_months: int | None = None
    maturity_date: datetime | None = None
    compounding_frequency: CompoundingFrequency | None = None
    early_withdrawal_penalty: float | None = None
    withholding_tax_rate: float | None = None
    cd_created_at: datetime | None = None


class UpdateAccountRequest(BaseModel):
    name: str | None = Field(None, max_length=100)
    color: str | None = Field(None, max_length=7)
    currency: Currency | None = None


class UpdateInvestmentRequest(BaseModel):
    shares: float | None = None
    invested_amount: float | None = None


class CascadeDeleteRequest(BaseModel):
    delete_movements: bool = Field(
        False, description="True: hard delete movements. False: keep them as orphans."
    )


class ReorderAccountsRequest(BaseModel):
    account_ids: list[str]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    id: str
    name: str
    color: str
    currency: str
    balance: float
    type: str
    display_order: int | None
    # Investment
    stock_symbol: str | None = None
    invested_amount: float | None = None
    shares: float | None = None
    current_price: float | None = None
    gains: float | None = None
    gains_percentage: float | None = None
    # CD
    principal: float | None = None
    interest_rate: float | None = None
    term_months: int | None = None
    maturity_date: str | None = None           # ISO8601
    compounding_frequency: str | None = None
    early_withdrawal_penalty: float | None = None
    withholding_tax_rate: float | None = None
    cd_created_at: str | None = None           # ISO8601

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            name=account.name,
            color=account.color,
            currency=account.currency.value,
            balance=account.balance,
            type=account.type.value,
            display_order=account.display_order,
            stock_symbol=account.stock_symbol,
            invested_amount=account.invested_amount,
            shares=account.shares,
            principal=account.principal,
            interest_rate=account.interest_rate,
            term_months=account.term_months,
            maturity_date=account.maturity_date.isoformat() if account.maturity_date else None,
            compounding_frequency=(
                account.compounding_frequency.value if account.compounding_frequency else None
            ),
            early_withdrawal_penalty=account.early_withdrawal_penalty,
            withholding_tax_rate=account.withholding_tax_rate,
            cd_created_at=account.cd_created_at.isoformat() if account.cd_created_at else None,
        )


class AccountListResponse(BaseModel):
    items: list[AccountResponse]
    total: int


class CascadeDeleteResponse(BaseModel):
    account: str
    pockets: int
    sub_pockets: int
    movements: int

    @classmethod
    def from_result(cls, result: CascadeDeleteResult) -> "CascadeDeleteResponse":
        return cls(
            account=result.account_name,
            pockets=result.pockets_deleted,
            sub_pockets=result.sub_pockets_deleted,
            movements=result.movements_affected,
        )


class StockPriceResponse(BaseModel):
    symbol: str
    price: float
    captured_at: str  # ISO8601
    source: str | None

    @classmethod
    def from_domain(cls, quote: StockPrice) -> "StockPriceResponse":
        return cls(
            symbol=quote.symbol,
            price=quote.price,
            captured_at=quote.captured_at.isoformat(),
            source=quote.source.value if quote.source else None,
        )


class CacheStatsResponse(BaseModel):
    local_cache_size: int
