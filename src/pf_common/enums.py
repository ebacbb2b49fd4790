"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class Currency(str, Enum):
    USD = "USD"
    MXN = "MXN"
    COP = "COP"
    EUR = "EUR"
    GBP = "GBP"


class AccountType(str, Enum):
    NORMAL = "normal"
    INVESTMENT = "investment"
    CD = "cd"


class CompoundingFrequency(str, Enum):
    """CD compounding periods; `periods_per_year` is the n in P(1 + r/n)^(nt)."""

    DAILY = "daily"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]


_PERIODS_PER_YEAR = {
    CompoundingFrequency.DAILY: 365,
    CompoundingFrequency.MONTHLY: 12,
    CompoundingFrequency.QUARTERLY: 4,
    CompoundingFrequency.ANNUALLY: 1,
}


class PocketType(str, Enum):
    NORMAL = "normal"
    FIXED = "fixed"


class PriceSource(str, Enum):
    """Which tier answered a stock price lookup."""

    CACHE = "cache"
    PERSISTED_STORE = "persisted-store"
    REMOTE_API = "remote-api"
