import json
import os
from datetime import date, timedelta

import pytest

from places_enricher.exceptions import PersistenceError
from places_enricher.models import NotFoundRecord, QuotaDecision, QuotaState
from places_enricher.state import ProgressTracker, QuotaTracker, ResultStore
from places_enricher.state.json_store import append_json, read_json, write_json


class FakeClock:
    """Mutable `today` for crossing the quota reset boundary."""

    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day


# --- json_store ---

def test_read_missing_file_returns_default(tmp_path):
    assert read_json(str(tmp_path / "absent.json"), default=[]) == []


def test_write_creates_directories_and_leaves_no_temp_files(tmp_path):
    path = tmp_path / "nested" / "dir" / "state.json"
    write_json(str(path), {"a": 1})
    assert json.loads(path.read_text()) == {"a": 1}
    assert os.listdir(path.parent) == ["state.json"]


def test_corrupt_file_raises_persistence_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(PersistenceError):
        read_json(str(path))


def test_append_to_non_list_document_fails(tmp_path):
    path = tmp_path / "doc.json"
    write_json(str(path), {"not": "a list"})
    with pytest.raises(PersistenceError):
        append_json(str(path), 1)


def test_unwritable_path_raises_persistence_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(PersistenceError):
        write_json(str(blocker / "child.json"), {})


# --- QuotaTracker ---

def test_quota_defaults_when_file_absent(tmp_path):
    clock = FakeClock(date(2024, 3, 1))
    tracker = QuotaTracker(str(tmp_path / "counter.json"), limit=5, today=clock)
    assert tracker.load() == QuotaState(count=0, last_reset=date(2024, 3, 1))
    assert tracker.remaining() == 5


def test_quota_denies_after_limit_and_leaves_state_unmodified(tmp_path):
    path = tmp_path / "counter.json"
    tracker = QuotaTracker(str(path), limit=3, today=FakeClock(date(2024, 3, 1)))

    counts = [tracker.try_consume() for _ in range(3)]
    assert [d.permitted for d in counts] == [True, True, True]
    assert [d.count for d in counts] == [1, 2, 3]

    before = path.read_text()
    denied = tracker.try_consume()
    assert not denied.permitted
    assert denied.count == 3
    assert path.read_text() == before


def test_quota_resets_on_new_day(tmp_path):
    clock = FakeClock(date(2024, 3, 1))
    tracker = QuotaTracker(str(tmp_path / "counter.json"), limit=2, today=clock)
    tracker.try_consume()
    tracker.try_consume()
    assert not tracker.try_consume().permitted

    clock.day += timedelta(days=1)
    decision = tracker.try_consume()
    assert decision.permitted
    assert decision.count == 1
    assert tracker.load() == QuotaState(count=1, last_reset=date(2024, 3, 2))


def test_quota_persists_across_instances(tmp_path):
    path = str(tmp_path / "counter.json")
    clock = FakeClock(date(2024, 3, 1))
    QuotaTracker(path, limit=10, today=clock).try_consume()
    QuotaTracker(path, limit=10, today=clock).try_consume()

    assert QuotaTracker(path, limit=10, today=clock).load().count == 2
    with open(path) as f:
        assert json.load(f) == {"count": 2, "last_reset": "2024-03-01"}


# --- ProgressTracker ---

def test_progress_defaults_to_zero(tmp_path):
    assert ProgressTracker(str(tmp_path / "progress.json")).load() == 0


def test_progress_commit_then_load(tmp_path):
    path = str(tmp_path / "progress.json")
    tracker = ProgressTracker(path)
    tracker.commit(7)
    assert tracker.load() == 7
    assert ProgressTracker(path).load() == 7


def test_progress_commits_are_monotonic_in_a_run(tmp_path):
    tracker = ProgressTracker(str(tmp_path / "progress.json"))
    seen = []
    for index in (1, 2, 2, 5):
        tracker.commit(index)
        seen.append(tracker.load())
    assert seen == sorted(seen)


# --- ResultStore ---

def test_result_store_appends_in_order(tmp_path):
    store = ResultStore(str(tmp_path / "out.json"), str(tmp_path / "not_found.json"))
    store.record_match({"name": "A", "formatted_address": "1 St", "rating": 4.5})
    store.record_match({"name": "B", "formatted_address": "2 St"})
    assert [m["name"] for m in store.matches()] == ["A", "B"]
    assert store.matches()[0]["rating"] == 4.5
    assert store.not_found() == []


def test_result_store_not_found_shape(tmp_path):
    store = ResultStore(str(tmp_path / "out.json"), str(tmp_path / "not_found.json"))
    store.record_not_found(NotFoundRecord("Acme Clinic", "1 Main St", 2))
    assert store.not_found() == [{"businessName": "Acme Clinic", "address": "1 Main St", "sheetNumber": 2}]
    assert store.matches() == []


def test_quota_reads_older_counter_layout(tmp_path):
    path = tmp_path / "counter.json"
    path.write_text(json.dumps({"count": 999, "lastReset": "Fri Mar 01 2024"}))
    tracker = QuotaTracker(str(path), limit=1000, today=FakeClock(date(2024, 3, 1)))

    decision = tracker.try_consume()
    assert decision.permitted
    assert decision.count == 1000
    assert not tracker.try_consume().permitted
    # Rewritten in the current layout on the next update
    assert json.loads(path.read_text()) == {"count": 1000, "last_reset": "2024-03-01"}


def test_quota_older_layout_from_previous_day_resets(tmp_path):
    path = tmp_path / "counter.json"
    path.write_text(json.dumps({"count": 1000, "lastReset": "Thu Feb 29 2024"}))
    tracker = QuotaTracker(str(path), limit=1000, today=FakeClock(date(2024, 3, 1)))

    assert tracker.try_consume() == QuotaDecision(permitted=True, count=1)


@pytest.mark.parametrize(
    "content",
    [
        "[]",
        "{}",
        '{"count": 3}',
        '{"count": 3, "last_reset": "not-a-date"}',
        '{"count": 3, "lastReset": "yesterday"}',
        '{"count": "many", "last_reset": "2024-03-01"}',
        '{"count": -1, "last_reset": "2024-03-01"}',
        '"just a string"',
    ],
)
def test_malformed_counter_raises_persistence_error(tmp_path, content):
    path = tmp_path / "counter.json"
    path.write_text(content)
    tracker = QuotaTracker(str(path), limit=10, today=FakeClock(date(2024, 3, 1)))

    with pytest.raises(PersistenceError):
        tracker.try_consume()
    assert path.read_text() == content


def test_progress_reads_older_last_row_key(tmp_path):
    path = tmp_path / "progress.json"
    path.write_text(json.dumps({"lastRow": 250}))
    tracker = ProgressTracker(str(path))

    assert tracker.load() == 250
    tracker.commit(251)
    assert json.loads(path.read_text()) == {"last_row": 251}


@pytest.mark.parametrize(
    "content",
    ["[]", "{}", "7", '{"last_row": "abc"}', '{"last_row": null}', '{"lastRow": -2}'],
)
def test_malformed_progress_raises_persistence_error(tmp_path, content):
    path = tmp_path / "progress.json"
    path.write_text(content)

    with pytest.raises(PersistenceError):
        ProgressTracker(str(path)).load()
