"""Account entity: pure dataclass, no SQLAlchemy dependency.

Every instance satisfies `validate()` at construction and after each mutation.
A mutation that would break an invariant is reverted before the error
propagates, so an invalid account is never observable.
"""

import math
import re
from dataclasses import InitVar, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from src.pf_common.datetime_utils import utc_now
from src.pf_common.enums import AccountType, CompoundingFrequency, Currency
from src.pf_common.errors import AccountTypeMismatchError, ValidationError

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_SYMBOL_RE = re.compile(r"^[A-Z]{1,5}$")
_SECONDS_PER_YEAR = 365.25 * 24 * 3600

_E = TypeVar("_E", bound=Enum)


def _coerce(enum_cls: type[_E], value: Any, label: str) -> _E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationError(f"Invalid {label} {value!r} - must be one of: {allowed}") from None


def _check_percentage(value: float | None, label: str) -> None:
    if value is not None and not (0 <= value <= 100):
        raise ValidationError(f"CD {label} must be between 0 and 100")


def _check_non_negative(value: float | None, message: str) -> None:
    if value is not None and (not math.isfinite(value) or value < 0):
        raise ValidationError(message)


@dataclass(eq=False)
class Account:
    id: str
    name: str
    color: str                                  # "#rrggbb"
    currency: Currency
    initial_balance: InitVar[float] = 0.0
    type: AccountType = AccountType.NORMAL
    # Investment (stock / ETF)
    stock_symbol: str | None = None
    invested_amount: float | None = None
    shares: float | None = None
    display_order: int | None = None
    # Certificate of deposit
    principal: float | None = None
    interest_rate: float | None = None          # annual %, 0-100
    term_months: int | None = None
    maturity_date: datetime | None = None
    compounding_frequency: CompoundingFrequency | None = None
    early_withdrawal_penalty: float | None = None   # %
    withholding_tax_rate: float | None = None       # % of interest gains
    cd_created_at: datetime | None = None
    _balance: float = field(init=False, repr=False, default=0.0)

    def __post_init__(self, initial_balance: float) -> None:
        self._balance = initial_balance
        self.validate()

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "id" and "id" in self.__dict__:
            raise AttributeError("Account id is immutable")
        super().__setattr__(name, value)

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Normalize enum/symbol fields and enforce every domain invariant."""
        if not self.name or not self.name.strip():
            raise ValidationError("Account name cannot be empty")
        if not isinstance(self.color, str) or not _COLOR_RE.match(self.color):
            raise ValidationError("Invalid color format - must be hex format like #3b82f6")

        self.currency = _coerce(Currency, self.currency, "currency")
        self.type = _coerce(AccountType, self.type, "account type")

        if not math.isfinite(self._balance):
            raise ValidationError("Account balance must be a finite number")
        _check_non_negative(self.shares, "Shares must be a finite, non-negative number")
        _check_non_negative(
            self.invested_amount, "Investment amount must be a finite, non-negative number"
        )
        if self.display_order is not None and self.display_order < 0:
            raise ValidationError("Display order cannot be negative")

        if self.type is AccountType.INVESTMENT:
            symbol = (self.stock_symbol or "").strip().upper()
            if not symbol:
                raise ValidationError("Investment accounts must have a stock symbol")
            if not _SYMBOL_RE.match(symbol):
                raise ValidationError("Stock symbol must be 1-5 letters")
            self.stock_symbol = symbol
        elif self.type is AccountType.CD:
            self._validate_cd_fields()

    def _validate_cd_fields(self) -> None:
        principal = self.principal
        if principal is not None and (not math.isfinite(principal) or principal <= 0):
            raise ValidationError("CD principal must be positive")
        _check_percentage(self.interest_rate, "interest rate")
        if self.term_months is not None and not (1 <= self.term_months <= 600):
            raise ValidationError("CD term must be between 1 and 600 months")
        _check_percentage(self.early_withdrawal_penalty, "early withdrawal penalty")
        _check_percentage(self.withholding_tax_rate, "withholding tax rate")
        if self.compounding_frequency is not None:
            self.compounding_frequency = _coerce(
                CompoundingFrequency, self.compounding_frequency, "compounding frequency"
            )
        for label, value in (("maturity date", self.maturity_date), ("start date", self.cd_created_at)):
            if value is not None and value.tzinfo is None:
                raise ValidationError(f"CD {label} must be timezone-aware")

    def _apply(self, **changes: Any) -> None:
        previous = {name: getattr(self, name) for name in changes}
        for name, value in changes.items():
            setattr(self, name, value)
        try:
            self.validate()
        except ValidationError:
            for name, value in previous.items():
                setattr(self, name, value)
            raise

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    @property
    def balance(self) -> float:
        """Derived balance; only BalanceCalculator writes it via update_balance."""
        return self._balance

    def update_balance(self, new_balance: float) -> None:
        self._apply(_balance=new_balance)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update(
        self,
        name: str | None = None,
        color: str | None = None,
        currency: Currency | str | None = None,
    ) -> None:
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if color is not None:
            changes["color"] = color
        if currency is not None:
            changes["currency"] = currency
        self._apply(**changes)

    def update_investment_details(
        self, shares: float | None = None, invested_amount: float | None = None
    ) -> None:
        if not self.is_investment():
            raise AccountTypeMismatchError("update investment details", self.type.value)
        changes: dict[str, Any] = {}
        if shares is not None:
            changes["shares"] = shares
        if invested_amount is not None:
            changes["invested_amount"] = invested_amount
        self._apply(**changes)

    def update_cd_details(
        self,
        principal: float | None = None,
        interest_rate: float | None = None,
        term_months: int | None = None,
        maturity_date: datetime | None = None,
        compounding_frequency: CompoundingFrequency | str | None = None,
        early_withdrawal_penalty: float | None = None,
        withholding_tax_rate: float | None = None,
        cd_created_at: datetime | None = None,
    ) -> None:
        if not self.is_cd():
            raise AccountTypeMismatchError("update CD details", self.type.value)
        candidates = {
            "principal": principal,
            "interest_rate": interest_rate,
            "term_months": term_months,
            "maturity_date": maturity_date,
            "compounding_frequency": compounding_frequency,
            "early_withdrawal_penalty": early_withdrawal_penalty,
            "withholding_tax_rate": withholding_tax_rate,
            "cd_created_at": cd_created_at,
        }
        self._apply(**{k: v for k, v in candidates.items() if v is not None})

    def update_display_order(self, order: int) -> None:
        if order < 0:
            raise ValidationError("Display order cannot be negative")
        self._apply(display_order=order)

    # ------------------------------------------------------------------
    # Calculations
    # ------------------------------------------------------------------

    def calculate_investment_balance(self, current_price: float) -> float:
        """shares * current_price, or 0 when no shares are held."""
        if not self.is_investment():
            raise AccountTypeMismatchError("calculate investment balance", self.type.value)
        if current_price < 0:
            raise ValidationError("Stock price cannot be negative")
        if not self.shares:
            return 0.0
        return self.shares * current_price

    def calculate_cd_balance(self, now: datetime | None = None) -> float:
        """Compound interest A = P(1 + r/n)^(nt), never compounding past maturity.

        Withholding tax is taken from the interest gains. Result rounded to cents.
        """
        if not self.is_cd():
            raise AccountTypeMismatchError("calculate CD balance", self.type.value)
        if not (self.principal and self.interest_rate and self.term_months and self.cd_created_at):
            return self.principal or 0.0

        now = now or utc_now()
        effective = min(now, self.maturity_date) if self.maturity_date else now
        years = (effective - self.cd_created_at).total_seconds() / _SECONDS_PER_YEAR
        if years <= 0:
            return self.principal

        n = (self.compounding_frequency or CompoundingFrequency.MONTHLY).periods_per_year
        gross = self.principal * (1 + self.interest_rate / 100 / n) ** (n * years)
        if self.withholding_tax_rate:
            gross -= (gross - self.principal) * self.withholding_tax_rate / 100
        return round(gross, 2)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_investment(self) -> bool:
        return self.type is AccountType.INVESTMENT

    def is_normal(self) -> bool:
        return self.type is AccountType.NORMAL

    def is_cd(self) -> bool:
        return self.type is AccountType.CD

    @property
    def display_sort_key(self) -> tuple[bool, int]:
        # Accounts without a display order go after every ordered account
        return (self.display_order is None, self.display_order or 0)
