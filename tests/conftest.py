import json
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture()
def counter_idl_path() -> Path:
    return FIXTURES / "counter.json"


@pytest.fixture()
def legacy_idl_path() -> Path:
    return FIXTURES / "legacy.json"


@pytest.fixture()
def counter_idl(counter_idl_path: Path) -> dict:
    return json.loads(counter_idl_path.read_text(encoding="utf-8"))
