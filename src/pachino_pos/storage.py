from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from platformdirs import user_data_dir
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from pachino_client_sdk.models_catalog import Variant

from .cart_lines import CartLine, make_line

logger = logging.getLogger(__name__)

CART_KEY = "cart"
FIELDS_KEY = "checkout_fields"
DRAFTS_KEY = "drafts"


class StoredLine(BaseModel):
    model_config = ConfigDict(extra="ignore")

    target: Variant
    substitute: Variant | None = None
    quantity: int = Field(ge=1)
    custom_price: Decimal | None = None


class CartSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    lines: list[StoredLine] = Field(default_factory=list)
    draft_id: str | None = None


class CheckoutFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    customer_id: str | None = None
    customer_name: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    notes: str = ""
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class DraftRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    lines: list[StoredLine]
    fields: CheckoutFields = Field(default_factory=CheckoutFields)
    total: Decimal
    timestamp: datetime


def to_stored(line: CartLine) -> StoredLine:
    return StoredLine(
        target=line.target_variant,
        substitute=line.substitute_variant,
        quantity=line.quantity,
        custom_price=line.custom_price,
    )


def from_stored(stored: StoredLine) -> CartLine:
    return make_line(
        stored.target,
        stored.quantity,
        fulfiller=stored.substitute,
        custom_price=stored.custom_price,
    )


@dataclass
class KeyValueStore:
    """JSON blobs on disk, one file per key, each write replacing the whole value."""

    app_name: str = "pachino-pos"
    base_dir: Path | None = None

    def _dir(self) -> Path:
        base = self.base_dir or Path(user_data_dir(self.app_name, "Pachino"))
        base.mkdir(parents=True, exist_ok=True)
        return base

    def _path(self, key: str) -> Path:
        return self._dir() / f"{key}.json"

    def read(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        # ValueError covers both undecodable bytes and malformed JSON.
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable store key %s: %s", key, exc)
            return None

    def write(self, key: str, value: Any) -> bool:
        tmp_name: str | None = None
        try:
            directory = self._dir()
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                json.dump(value, fp, indent=2)
            os.replace(tmp_name, self._path(key))
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not persist store key %s: %s", key, exc)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
        return True

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


class PosStorage:
    """Typed access to the three persisted keys: cart, checkout fields and drafts."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self.store = store or KeyValueStore()

    def load_cart(self) -> CartSnapshot:
        return self._load_model(CART_KEY, CartSnapshot)

    def save_cart(self, snapshot: CartSnapshot) -> bool:
        return self.store.write(CART_KEY, snapshot.model_dump(mode="json", by_alias=True))

    def load_fields(self) -> CheckoutFields:
        return self._load_model(FIELDS_KEY, CheckoutFields)

    def save_fields(self, fields: CheckoutFields) -> bool:
        return self.store.write(FIELDS_KEY, fields.model_dump(mode="json"))

    def load_drafts(self) -> list[DraftRecord]:
        raw = self.store.read(DRAFTS_KEY)
        if not isinstance(raw, list):
            return []
        drafts: list[DraftRecord] = []
        for entry in raw:
            try:
                drafts.append(DraftRecord.model_validate(entry))
            except PydanticValidationError as exc:
                logger.warning("Skipping malformed draft entry: %s", exc.errors()[:1])
        return drafts

    def save_drafts(self, drafts: list[DraftRecord]) -> bool:
        return self.store.write(DRAFTS_KEY, [draft.model_dump(mode="json", by_alias=True) for draft in drafts])

    def _load_model(self, key: str, model_type: type[Any]):
        raw = self.store.read(key)
        if raw is None:
            return model_type()
        try:
            return model_type.model_validate(raw)
        except PydanticValidationError as exc:
            logger.warning("Stored %s does not match its schema, starting empty: %s", key, exc.errors()[:1])
            return model_type()
