from __future__ import annotations

import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = BASE_DIR / "src"

sys.path.insert(0, str(SRC_DIR))

from pachino_client_sdk.models_catalog import Variant  # noqa: E402
from pachino_pos.storage import KeyValueStore, PosStorage  # noqa: E402


def make_variant(
    variant_id: str,
    *,
    product_id: str = "prod-1",
    product_name: str = "Linen Shirt",
    size: str = "M",
    color: str = "Navy",
    stock: int = 5,
    price: str = "100000",
    barcode: str | None = None,
    selling_price: str | None = None,
) -> Variant:
    return Variant.model_validate(
        {
            "id": variant_id,
            "productId": product_id,
            "product": {"id": product_id, "name": product_name, "sellingPrice": price},
            "size": {"name": size},
            "color": {"name": color, "hexCode": "#000080"},
            "stock": stock,
            "barcode": barcode,
            "sellingPrice": selling_price,
        }
    )


@pytest.fixture
def variant_factory():
    return make_variant


@pytest.fixture
def storage(tmp_path: Path) -> PosStorage:
    return PosStorage(KeyValueStore(base_dir=tmp_path / "store"))
