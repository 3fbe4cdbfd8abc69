from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from .cart import CartEngine
from .errors import DraftNotFoundError, ValidationError, ValidationIssue
from .storage import DraftRecord, PosStorage, from_stored, to_stored

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DraftStore:
    """Named cart snapshots kept on this device."""

    def __init__(self, storage: PosStorage, clock: Callable[[], datetime] = _utcnow) -> None:
        self.storage = storage
        self.clock = clock

    def save(self, name: str, cart: CartEngine) -> DraftRecord:
        issues = []
        if not name or not name.strip():
            issues.append(ValidationIssue(field="name", reason="draft name is required"))
        if cart.is_empty:
            issues.append(ValidationIssue(field="cart", reason="cannot save an empty cart"))
        if issues:
            raise ValidationError(issues)

        drafts = self.storage.load_drafts()
        timestamp = self.clock()
        record = DraftRecord(
            id=self._new_id(timestamp, {draft.id for draft in drafts}),
            name=name.strip(),
            lines=[to_stored(line) for line in cart.lines],
            fields=cart.fields,
            total=cart.total,
            timestamp=timestamp,
        )
        drafts.append(record)
        self.storage.save_drafts(drafts)
        logger.info("Saved draft %s with %d lines", record.id, len(record.lines))
        return record

    def list_drafts(self) -> list[DraftRecord]:
        return sorted(self.storage.load_drafts(), key=lambda draft: draft.timestamp, reverse=True)

    def get(self, draft_id: str) -> DraftRecord:
        for draft in self.storage.load_drafts():
            if draft.id == draft_id:
                return draft
        raise DraftNotFoundError(draft_id)

    def load(self, draft_id: str, cart: CartEngine) -> DraftRecord:
        """Overwrite ``cart`` with the draft and remember where it came from."""
        draft = self.get(draft_id)
        cart.replace_state(
            (from_stored(stored) for stored in draft.lines),
            draft.fields,
            draft_id=draft.id,
        )
        logger.info("Loaded draft %s into the cart", draft.id)
        return draft

    def delete(self, draft_id: str) -> bool:
        drafts = self.storage.load_drafts()
        remaining = [draft for draft in drafts if draft.id != draft_id]
        if len(remaining) == len(drafts):
            return False
        self.storage.save_drafts(remaining)
        logger.info("Deleted draft %s", draft_id)
        return True

    @staticmethod
    def _new_id(timestamp: datetime, taken: set[str]) -> str:
        millis = int(timestamp.timestamp() * 1000)
        candidate = f"draft-{millis}"
        while candidate in taken:
            millis += 1
            candidate = f"draft-{millis}"
        return candidate
