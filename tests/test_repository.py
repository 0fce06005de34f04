import json

import pytest

from wind_monitor.infrastructure.repositories import data_repository
from wind_monitor.infrastructure.repositories.data_repository import (
    InMemoryHistoryRepository,
    JsonFileHistoryRepository,
)


@pytest.fixture()
def repo(tmp_path):
    base_dir = tmp_path / "history"
    base_dir.mkdir()
    return JsonFileHistoryRepository(base_dir)


def test_missing_file_loads_empty(repo):
    assert repo.load("alice") == []


def test_save_then_load_round_trip(repo, make_observation):
    records = [make_observation(2_000, id="b"), make_observation(1_000, id="a")]

    assert repo.save("alice", records) is True

    assert repo.load("alice") == records
    assert repo.load("bob") == []


def test_file_uses_persisted_field_names(repo, make_observation):
    repo.save("alice", [make_observation(1_000)])

    payload = json.loads(repo.path_for("alice").read_text(encoding="utf-8"))

    assert repo.path_for("alice").name == "windData_alice.json"
    assert set(payload[0]) == {
        "id", "timestampMillis", "date", "time", "minSpeedKnots", "avgSpeedKnots",
        "gustSpeedKnots", "direction", "degrees", "temperatureCelsius", "ownerId",
    }


def test_owner_id_is_sanitized_for_file_names(repo):
    path = repo.path_for("../evil/owner")

    assert path.parent == repo.base_dir
    assert path.name == "windData_..%2Fevil%2Fowner.json"


def test_corrupt_file_loads_empty(repo):
    repo.path_for("alice").write_text("{not json", encoding="utf-8")

    assert repo.load("alice") == []


def test_non_list_payload_loads_empty(repo):
    repo.path_for("alice").write_text('{"id": "x"}', encoding="utf-8")

    assert repo.load("alice") == []


def test_malformed_entries_are_dropped(repo, make_observation):
    good = make_observation(1_000).to_dict()
    bad = dict(good, timestampMillis="not-a-number")
    repo.path_for("alice").write_text(json.dumps([good, bad, "junk"]), encoding="utf-8")

    records = repo.load("alice")

    assert len(records) == 1
    assert records[0].timestamp_millis == 1_000


def test_failed_write_returns_false_and_keeps_previous_file(repo, make_observation, monkeypatch):
    repo.save("alice", [make_observation(1_000)])

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(data_repository.os, "replace", boom)

    assert repo.save("alice", [make_observation(2_000)]) is False
    monkeypatch.undo()

    assert [r.timestamp_millis for r in repo.load("alice")] == [1_000]
    assert list(repo.base_dir.glob("*.tmp")) == []


def test_in_memory_repository_round_trip(make_observation):
    repo = InMemoryHistoryRepository()
    records = [make_observation(1_000)]

    assert repo.load("alice") == []
    assert repo.save("alice", records) is True
    assert repo.load("alice") == records


def test_similar_owner_ids_get_separate_files(repo, make_observation):
    repo.save("alice@x.com", [make_observation(1_000, owner_id="alice@x.com")])

    assert repo.path_for("alice@x.com") != repo.path_for("alice_x.com")
    assert repo.load("alice_x.com") == []
    assert [r.owner_id for r in repo.load("alice@x.com")] == ["alice@x.com"]


def test_directory_is_created_on_first_save(tmp_path, make_observation):
    repo = JsonFileHistoryRepository(tmp_path / "nested" / "history")

    assert not repo.base_dir.exists()
    assert repo.load("alice") == []
    assert repo.save("alice", [make_observation(1_000)]) is True
    assert repo.path_for("alice").exists()


def test_unusable_directory_fails_save_without_raising(tmp_path, make_observation):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    repo = JsonFileHistoryRepository(blocker / "history")

    assert repo.load("alice") == []
    assert repo.save("alice", [make_observation(1_000)]) is False
