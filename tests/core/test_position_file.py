from pathlib import Path

import orjson
import pytest

from clockpulse.adapters.position_file import JsonFilePositionStore


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    return tmp_path / "state" / "position.json"


def test_missing_file_loads_none(state_path: Path) -> None:
    assert JsonFilePositionStore(state_path).load() is None


def test_save_then_load(state_path: Path) -> None:
    store = JsonFilePositionStore(state_path)
    store.save("07:42")

    assert store.load() == "07:42"
    data = orjson.loads(state_path.read_bytes())
    assert data["position"] == "07:42"
    assert isinstance(data["saved_at"], int)


def test_save_overwrites_and_leaves_no_temp_file(state_path: Path) -> None:
    store = JsonFilePositionStore(state_path)
    store.save("07:42")
    store.save("07:43")

    assert store.load() == "07:43"
    assert sorted(p.name for p in state_path.parent.iterdir()) == ["position.json"]


@pytest.mark.parametrize(
    "content",
    [b"not json", b"[1, 2]", b'{"saved_at": 1}', b'{"position": "25:99"}', b'{"position": 7}'],
)
def test_unusable_file_loads_none(state_path: Path, content: bytes) -> None:
    state_path.parent.mkdir(parents=True)
    state_path.write_bytes(content)

    assert JsonFilePositionStore(state_path).load() is None
