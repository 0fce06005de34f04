import threading

import requests

from wind_monitor.controller.wind_data_controller import DISCONNECTED_MESSAGE, FALLBACK_MESSAGE
from wind_monitor.domain.models import DataSource
from wind_monitor.errors import FetchError
from wind_monitor.infrastructure.repositories.data_repository import InMemoryHistoryRepository

SCENARIO_LINE = "17/07/2025 11:27 6 nodi 7 nodi 9 nodi ENE 67 30°C"


class FailingRepository(InMemoryHistoryRepository):
    def save(self, owner_id, records):
        return False


class ExplodingRepository(InMemoryHistoryRepository):
    def load(self, owner_id):
        raise OSError("unreadable")

    def save(self, owner_id, records):
        raise OSError("read-only")


def test_fetch_failure_on_empty_history_persists_one_synthetic_record(
    build_controller, stub_fetcher_factory, telemetry_events,
):
    repository = InMemoryHistoryRepository()
    fetcher = stub_fetcher_factory(error=FetchError("https://www.wind24.it/cattolica/history"))
    controller = build_controller(fetcher, repository)

    result = controller.refresh("alice")

    assert len(result.history) == 1
    assert repository.load("alice") == result.history
    assert result.status.connected is False
    assert result.status.data_source is DataSource.SYNTHETIC
    assert result.status.persisted is True
    assert result.status.message == DISCONNECTED_MESSAGE
    kinds = [event.kind for event in telemetry_events]
    assert kinds[0] == "pipeline.start"
    assert "pipeline.fetch_failed" in kinds
    assert kinds[-1] == "pipeline.degraded"
    assert "pipeline.success" not in kinds
    assert telemetry_events[-1].payload["source"] == "synthetic"


def test_unexpected_fetch_error_is_contained(build_controller, stub_fetcher_factory):
    controller = build_controller(stub_fetcher_factory(error=ValueError("bad payload")))

    result = controller.refresh("alice")

    assert result.status.connected is False
    assert len(result.history) == 1


def test_requests_error_counts_as_disconnected(build_controller, stub_fetcher_factory):
    controller = build_controller(stub_fetcher_factory(error=requests.ConnectionError("down")))

    assert controller.refresh("alice").status.connected is False


def test_successful_refresh_stores_live_records(build_controller, stub_fetcher_factory, telemetry_events):
    repository = InMemoryHistoryRepository()
    controller = build_controller(stub_fetcher_factory(SCENARIO_LINE), repository)

    result = controller.refresh("alice")

    assert result.skipped is False
    assert result.status.connected is True
    assert result.status.data_source is DataSource.LIVE
    assert result.status.new_records == 1
    assert result.status.message == "Updated with 1 new data points"
    assert [r.direction for r in repository.load("alice")] == ["ENE"]
    assert telemetry_events[-1].kind == "pipeline.success"
    assert telemetry_events[-1].payload["source"] == "live"


def test_unparseable_page_uses_fallback_but_stays_connected(
    build_controller, stub_fetcher_factory, telemetry_events,
):
    controller = build_controller(stub_fetcher_factory("site under maintenance"))

    result = controller.refresh("alice")

    assert result.status.connected is True
    assert result.status.data_source is DataSource.SYNTHETIC
    assert result.status.message == FALLBACK_MESSAGE
    assert "pipeline.fallback" in [event.kind for event in telemetry_events]
    assert telemetry_events[-1].kind == "pipeline.degraded"


def test_repeated_refresh_does_not_duplicate(build_controller, stub_fetcher_factory):
    controller = build_controller(stub_fetcher_factory(SCENARIO_LINE))

    controller.refresh("alice")
    result = controller.refresh("alice")

    assert len(result.history) == 1


def test_new_record_replaces_near_duplicate_from_storage(
    build_controller, stub_fetcher_factory, make_observation,
):
    repository = InMemoryHistoryRepository()
    controller = build_controller(stub_fetcher_factory(SCENARIO_LINE), repository)
    first = controller.refresh("alice").history[0]
    stale = make_observation(first.timestamp_millis + 15_000, id="stale")

    fresh_controller = build_controller(stub_fetcher_factory(SCENARIO_LINE), repository)
    repository.save("alice", [stale])
    result = fresh_controller.refresh("alice")

    assert len(result.history) == 1
    assert result.history[0].id != "stale"
    assert result.history[0].timestamp_millis == first.timestamp_millis


def test_persistence_failure_keeps_memory_state(
    build_controller, stub_fetcher_factory, telemetry_events,
):
    controller = build_controller(stub_fetcher_factory(SCENARIO_LINE), FailingRepository())

    result = controller.refresh("alice")

    assert result.status.persisted is False
    assert len(controller.get_history("alice")) == 1
    assert "pipeline.persist_failed" in [event.kind for event in telemetry_events]


def test_storage_exceptions_do_not_escape(build_controller, stub_fetcher_factory):
    controller = build_controller(stub_fetcher_factory(SCENARIO_LINE), ExplodingRepository())

    result = controller.refresh("alice")

    assert result.status.persisted is False
    assert len(result.history) == 1


def test_owners_are_isolated(build_controller, stub_fetcher_factory):
    controller = build_controller(stub_fetcher_factory(SCENARIO_LINE))

    controller.refresh("alice")

    assert controller.get_history("bob") == []
    assert controller.get_history("alice")[0].owner_id == "alice"


def test_loaded_history_sets_last_update(build_controller, stub_fetcher_factory, make_observation):
    repository = InMemoryHistoryRepository()
    repository.save("alice", [make_observation(1_752_744_420_000)])
    controller = build_controller(stub_fetcher_factory(), repository)

    status = controller.get_status("alice")

    assert status.last_update is not None
    assert int(status.last_update.timestamp() * 1000) == 1_752_744_420_000


def test_overlapping_refresh_is_skipped(build_controller, telemetry_events):
    entered = threading.Event()
    release = threading.Event()

    class BlockingFetcher:
        calls = 0

        def fetch(self):
            BlockingFetcher.calls += 1
            entered.set()
            release.wait(5)
            return SCENARIO_LINE

    controller = build_controller(BlockingFetcher())
    results = []
    worker = threading.Thread(target=lambda: results.append(controller.refresh("alice")))
    worker.start()
    assert entered.wait(5)

    skipped = controller.refresh("alice")
    release.set()
    worker.join(5)

    assert skipped.skipped is True
    assert results[0].skipped is False
    assert BlockingFetcher.calls == 1
    assert "pipeline.skipped" in [event.kind for event in telemetry_events]


def test_summary_and_export(build_controller, stub_fetcher_factory):
    controller = build_controller(stub_fetcher_factory(SCENARIO_LINE))
    controller.refresh("alice")

    summary = controller.get_summary("alice")

    assert summary.count == 1
    assert summary.max_gust_knots == 9
    assert controller.get_direction_frequency("alice") == {"ENE": 1}
    assert controller.export_csv("alice").splitlines()[1].startswith("17/07/2025,11:27,6,7,9,ENE,67,30")


def test_status_returned_to_callers_is_a_copy(build_controller, stub_fetcher_factory):
    controller = build_controller(stub_fetcher_factory(SCENARIO_LINE))
    result = controller.refresh("alice")

    result.status.message = "changed by caller"
    status = controller.get_status("alice")
    status.connected = False

    current = controller.get_status("alice")
    assert current.message == "Updated with 1 new data points"
    assert current.connected is True
