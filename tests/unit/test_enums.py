"""Tests for pf_common.enums and pf_common.datetime_utils."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.pf_common.datetime_utils import as_utc, utc_now
from src.pf_common.enums import AccountType, CompoundingFrequency, Currency, PriceSource


class TestEnums:
    def test_currencies(self) -> None:
        assert [c.value for c in Currency] == ["USD", "MXN", "COP", "EUR", "GBP"]

    def test_account_types_match_db_check(self) -> None:
        assert {t.value for t in AccountType} == {"normal", "investment", "cd"}

    @pytest.mark.parametrize(
        "freq,periods",
        [
            (CompoundingFrequency.DAILY, 365),
            (CompoundingFrequency.MONTHLY, 12),
            (CompoundingFrequency.QUARTERLY, 4),
            (CompoundingFrequency.ANNUALLY, 1),
        ],
    )
    def test_periods_per_year(self, freq: CompoundingFrequency, periods: int) -> None:
        assert freq.periods_per_year == periods

    def test_price_sources(self) -> None:
        assert PriceSource("persisted-store") is PriceSource.PERSISTED_STORE


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is not None

    def test_as_utc_attaches_utc_to_naive(self) -> None:
        assert as_utc(datetime(2026, 1, 1, 8, 0)) == datetime(2026, 1, 1, 8, 0, tzinfo=UTC)

    def test_as_utc_converts_aware(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        converted = as_utc(datetime(2026, 1, 1, 10, 0, tzinfo=plus_two))
        assert converted.hour == 8
        assert converted.utcoffset() == timedelta(0)
