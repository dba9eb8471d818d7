"""JSON 상태 저장소 테스트"""

from src.storage import StateStore
from src.storage.state_store import TOTAL_DONATIONS_KEY, UNLOCKED_VIEWERS_KEY


def test_missing_file_is_empty(tmp_path):
    store = StateStore(tmp_path / "none.json")
    assert store.get("x", 5) == 5
    assert store.load_total_donations() == 0
    assert store.load_unlocked_ids() == set()


def test_write_through(tmp_path):
    path = tmp_path / "nested" / "state.json"
    store = StateStore(path)
    store.set(TOTAL_DONATIONS_KEY, 42)
    assert path.exists()
    assert StateStore(path).get(TOTAL_DONATIONS_KEY) == 42
    assert [p.name for p in path.parent.iterdir()] == ["state.json"]


def test_corrupt_file_reads_empty(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    assert StateStore(path).load_total_donations() == 0

    path.write_text("[1, 2]", encoding="utf-8")
    assert StateStore(path).get(TOTAL_DONATIONS_KEY) is None


def test_bad_values_are_sanitized(tmp_path):
    path = tmp_path / "state.json"
    path.write_text('{"totalDonations": "abc", "unlockedViewers": "viewer_jobs"}', encoding="utf-8")
    store = StateStore(path)
    assert store.load_total_donations() == 0
    assert store.load_unlocked_ids() == set()

    store.set(UNLOCKED_VIEWERS_KEY, ["a", 1, None])
    assert store.load_unlocked_ids() == {"a", "1"}
