"""Domain models for pf_pocket: pure dataclasses, no business logic.

Pockets are owned by the pockets feature; accounts only read balances from
them and remove them during a cascade delete.
"""

from dataclasses import dataclass
from datetime import datetime

from src.pf_common.enums import PocketType


@dataclass
class Pocket:
    id: str
    account_id: str
    name: str
    type: PocketType
    balance: float                 # may be negative
    currency: str
    display_order: int | None = None
    created_at: datetime | None = None

    @property
    def is_fixed(self) -> bool:
        return self.type == PocketType.FIXED


@dataclass
class SubPocket:
    """Fixed-expense slot inside a `fixed` pocket."""

    id: str
    pocket_id: str
    name: str
    value_total: float
    periodicity_months: int
    balance: float = 0.0
    enabled: bool = True
    display_order: int | None = None
