"""BalanceCalculator: per-account-type balance rules in one place.

  normal      sum of pocket balances (negatives allowed, empty = 0)
  investment  shares * current price
  cd          compound interest on the principal up to today (or maturity)

Dispatch is an exhaustive match over AccountType: adding a fourth kind makes
`assert_never` fail type checking until a branch is written for it.
"""

from collections.abc import Sequence
from typing import assert_never

from src.pf_account.domain.models import Account
from src.pf_common.enums import AccountType
from src.pf_common.errors import AccountTypeMismatchError, BalancePreconditionError
from src.pf_pocket.domain.models import Pocket


class BalanceCalculator:
    """Stateless domain service: instantiate once, reuse across requests."""

    def update_account_balance(
        self,
        account: Account,
        pockets: Sequence[Pocket] | None = None,
        current_price: float | None = None,
    ) -> float:
        """Compute the balance for `account`, write it back and return it."""
        match account.type:
            case AccountType.CD:
                balance = account.calculate_cd_balance()
            case AccountType.INVESTMENT:
                if current_price is None:
                    raise BalancePreconditionError(
                        "Current price is required for investment accounts"
                    )
                balance = self.calculate_investment_balance(account, current_price)
            case AccountType.NORMAL:
                if pockets is None:
                    raise BalancePreconditionError("Pockets are required for normal accounts")
                balance = self.calculate_balance_from_pockets(pockets)
            case _:
                assert_never(account.type)
        account.update_balance(balance)
        return balance

    def calculate_balance_from_pockets(self, pockets: Sequence[Pocket]) -> float:
        return sum((p.balance for p in pockets), 0.0)

    def calculate_investment_balance(self, account: Account, current_price: float) -> float:
        return account.calculate_investment_balance(current_price)

    def calculate_investment_gains(self, account: Account, current_price: float) -> float:
        """Current value minus invested amount (negative for losses)."""
        if not account.is_investment():
            raise AccountTypeMismatchError("calculate investment gains", account.type.value)
        current_value = self.calculate_investment_balance(account, current_price)
        return current_value - (account.invested_amount or 0.0)

    def calculate_investment_gains_percentage(
        self, account: Account, current_price: float
    ) -> float:
        """Gains as a percentage of the invested amount; 0 when nothing was invested."""
        if not account.is_investment():
            raise AccountTypeMismatchError("calculate investment gains", account.type.value)
        invested = account.invested_amount or 0.0
        if invested == 0:
            return 0.0
        return self.calculate_investment_gains(account, current_price) / invested * 100
