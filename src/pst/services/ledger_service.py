from __future__ import annotations

import logging
from typing import Optional

from pst.domain import validation as v
from pst.domain.errors import NotFoundError, ValidationError
from pst.domain.models import ACCOUNT, LedgerEntry
from pst.repositories.ledger_repo import LedgerRepository

log = logging.getLogger("pst.ledger")

_LABELS = {
    "account": "Account name",
    "receivable": "Customer name",
    "expense": "Expense name",
}


class LedgerService:
    """CRUD for one ledger kind: accounts, receivables or expenses."""

    def __init__(self, repo: LedgerRepository):
        self.repo = repo
        self.kind = repo.kind

    def _amount(self, value: object) -> float:
        # account balances may go negative (overdraft); the others may not
        return v.money(value, "Amount", allow_negative=self.kind == ACCOUNT)

    def list_entries(self) -> list[LedgerEntry]:
        return self.repo.list_entries()

    def add_entry(self, label: str, amount: float) -> LedgerEntry:
        entry = self.repo.add(v.required_text(label, _LABELS[self.kind]), self._amount(amount))
        log.info("ledger_added kind=%s id=%s amount=%.2f", self.kind, entry.id, entry.amount)
        return entry

    def update_entry(self, entry_id: str, label: Optional[str] = None, amount: Optional[float] = None) -> LedgerEntry:
        if label is None and amount is None:
            raise ValidationError("Nothing to update.")
        entry = self.repo.update(
            entry_id,
            label=v.required_text(label, _LABELS[self.kind]) if label is not None else None,
            amount=self._amount(amount) if amount is not None else None,
        )
        if not entry:
            raise NotFoundError(f"{self.kind.capitalize()} not found: {entry_id}")
        return entry

    def delete_entry(self, entry_id: str) -> None:
        if not self.repo.delete(entry_id):
            raise NotFoundError(f"{self.kind.capitalize()} not found: {entry_id}")
        log.info("ledger_deleted kind=%s id=%s", self.kind, entry_id)

    def total(self) -> float:
        return round(sum(e.amount for e in self.repo.list_entries()), 2)
