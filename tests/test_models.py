from datetime import datetime, timezone

from wind_monitor.domain.models import DataSource, PipelineStatus, RefreshResult, WindObservation


def test_observation_dict_round_trip(make_observation):
    record = make_observation(1_752_744_420_000)

    assert WindObservation.from_dict(record.to_dict()) == record


def test_from_dict_fills_missing_fields():
    record = WindObservation.from_dict({"id": "x", "timestampMillis": "5"})

    assert record.timestamp_millis == 5
    assert record.degrees == 0
    assert record.direction == ""
    assert record.owner_id == ""


def test_status_and_result_serialization(make_observation):
    status = PipelineStatus(
        connected=False,
        last_update=datetime(2025, 7, 17, 9, 30, tzinfo=timezone.utc),
        data_source=DataSource.SYNTHETIC,
        new_records=1,
        message="offline",
    )
    result = RefreshResult("alice", [make_observation(1_000)], status)

    payload = result.to_dict()

    assert payload["status"]["data_source"] == "synthetic"
    assert payload["status"]["last_update"] == "2025-07-17T09:30:00+00:00"
    assert payload["history"][0]["ownerId"] == "alice"
    assert payload["skipped"] is False
