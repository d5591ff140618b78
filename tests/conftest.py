"""Shared fixtures for the contoso_crafts test suite."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from contoso_crafts.config import ENV_MAPPINGS
from contoso_crafts.data.product_store import ProductStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch) -> None:
    """Keep host environment variables out of config-dependent tests."""
    for env_var in ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    return tmp_path / "wwwroot"


@pytest.fixture
def store(web_root: Path) -> ProductStore:
    return ProductStore(web_root)


def sample_record(product_id: str = "mit", **overrides) -> dict:
    """A valid on-disk record."""
    record = {
        "id": product_id,
        "maker": "Admissions",
        "img": f"/images/{product_id.upper()}_20240101000000.png",
        "url": "https://www.mit.edu",
        "title": "Massachusetts Institute of Technology",
        "description": "Private research university in Cambridge.",
        "ratings": [5, 4],
        "location": "Cambridge, MA",
        "graduateDegree": ["MS Computer Science"],
        "underGraduateDegree": ["BS Physics"],
        "typeOfUniversity": "Private",
        "numberOfDepartments": 30,
        "hasOnlinePrograms": True,
        "campuses": ["Main Campus"],
    }
    record.update(overrides)
    return record


@pytest.fixture
def seed(store: ProductStore):
    """Write raw records straight into products.json."""

    def _seed(*records: dict) -> ProductStore:
        store.json_path.write_text(json.dumps(list(records)), encoding="utf-8")
        return store

    return _seed
