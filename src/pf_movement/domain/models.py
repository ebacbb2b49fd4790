"""Domain models for pf_movement: pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Movement:
    id: str
    account_id: str
    pocket_id: str
    type: str                      # IngresoNormal / EgresoNormal / ... (DB CHECK)
    amount: float
    displayed_date: datetime
    sub_pocket_id: str | None = None
    notes: str | None = None
    is_pending: bool = False
    is_orphaned: bool = False
    # Snapshot kept once the owning account/pocket is gone
    orphaned_account_name: str | None = None
    orphaned_account_currency: str | None = None
    orphaned_pocket_name: str | None = None
