"""HTTP-level tests for the cycle and settings routers."""

from __future__ import annotations

from fastapi.testclient import TestClient

from src.models.cycles import CycleHistory
from src.services.storage import CYCLE_DATA_KEY, MemoryStore, save_history

API = "/api/v1"


def log_first_period(client: TestClient) -> None:
    assert client.post(f"{API}/cycles/events", json={"startDate": "2024-01-01"}).status_code == 201
    resp = client.post(
        f"{API}/cycles/events",
        json={"endDate": "2024-01-05", "flow": "heavy", "symptoms": ["cramps"]},
    )
    assert resp.status_code == 201


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["cycle_config_version"] == "1.0"


class TestEvents:
    def test_start_then_end(self, client: TestClient) -> None:
        resp = client.post(f"{API}/cycles/events", json={"startDate": "2024-01-01"})
        assert resp.status_code == 201
        assert resp.json()["period_logs"][0]["end_date"] is None

        resp = client.post(f"{API}/cycles/events", json={"endDate": "2024-01-05"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["period_logs"][0]["end_date"] == "2024-01-05"
        assert body["average_period_length"] == 5
        assert body["average_cycle_length"] == 28

    def test_events_are_persisted(self, client: TestClient) -> None:
        log_first_period(client)
        history = client.get(f"{API}/cycles").json()
        log = history["period_logs"][0]
        assert log["flow"] == "heavy"
        assert log["symptoms"] == ["cramps"]

    def test_end_without_open_period_conflicts(self, client: TestClient) -> None:
        log_first_period(client)
        resp = client.post(f"{API}/cycles/events", json={"endDate": "2024-01-06"})
        assert resp.status_code == 409
        assert resp.json()["detail"] == "no period in progress to end"

    def test_start_while_bleeding_conflicts(self, client: TestClient) -> None:
        client.post(f"{API}/cycles/events", json={"startDate": "2024-01-01"})
        resp = client.post(f"{API}/cycles/events", json={"startDate": "2024-01-20"})
        assert resp.status_code == 409
        assert "still in progress" in resp.json()["detail"]

    def test_rejected_event_leaves_store_untouched(
        self, client: TestClient, memory_store: MemoryStore
    ) -> None:
        log_first_period(client)
        before = memory_store.get(CYCLE_DATA_KEY)
        client.post(f"{API}/cycles/events", json={"startDate": "2023-12-01"})
        assert memory_store.get(CYCLE_DATA_KEY) == before

    def test_event_needs_a_date(self, client: TestClient) -> None:
        assert client.post(f"{API}/cycles/events", json={}).status_code == 422

    def test_bad_date_is_unprocessable(self, client: TestClient) -> None:
        resp = client.post(f"{API}/cycles/events", json={"startDate": "yesterday"})
        assert resp.status_code == 422


class TestStatusAndPredictions:
    def test_status_without_data(self, client: TestClient) -> None:
        body = client.get(f"{API}/cycles/status", params={"today": "2024-01-10"}).json()
        assert body["current_phase"] == "Not enough data"
        assert body["cycle_day"] is None

    def test_status(self, client: TestClient) -> None:
        log_first_period(client)
        body = client.get(f"{API}/cycles/status", params={"today": "2024-01-10"}).json()
        assert body == {
            "current_phase": "Follicular",
            "cycle_day": 10,
            "days_until_next_period": 19,
            "next_period_date": "2024-01-29",
        }

    def test_status_while_bleeding(self, client: TestClient) -> None:
        client.post(f"{API}/cycles/events", json={"startDate": "2024-01-01"})
        body = client.get(f"{API}/cycles/status", params={"today": "2024-01-03"}).json()
        assert body["current_phase"] == "Period"
        assert body["days_until_next_period"] == 0
        assert body["next_period_date"] is None

    def test_predictions(self, client: TestClient) -> None:
        log_first_period(client)
        body = client.get(f"{API}/cycles/predictions").json()
        assert body["next_periods"] == ["2024-01-29", "2024-02-26", "2024-03-25"]
        window = body["fertile_window"]
        assert window["start"] == "2024-01-10"
        assert window["end"] == "2024-01-16"
        assert window["ovulation_date"] == "2024-01-15"

    def test_prediction_count(self, client: TestClient) -> None:
        log_first_period(client)
        body = client.get(f"{API}/cycles/predictions", params={"count": 1}).json()
        assert body["next_periods"] == ["2024-01-29"]
        assert client.get(f"{API}/cycles/predictions", params={"count": 0}).status_code == 422

    def test_predictions_hidden_by_preference(self, client: TestClient) -> None:
        log_first_period(client)
        resp = client.put(f"{API}/settings/preferences", json={"showPredictions": False})
        assert resp.status_code == 200
        body = client.get(f"{API}/cycles/predictions").json()
        assert body == {"next_periods": [], "fertile_window": None}

    def test_fertile_window_hidden_by_preference(self, client: TestClient) -> None:
        log_first_period(client)
        client.put(f"{API}/settings/preferences", json={"showFertileWindow": False})
        body = client.get(f"{API}/cycles/predictions").json()
        assert len(body["next_periods"]) == 3
        assert body["fertile_window"] is None


class TestInsightsAndCalendar:
    def test_insights_need_two_logs(self, client: TestClient) -> None:
        log_first_period(client)
        assert client.get(f"{API}/cycles/insights").json() == {
            "available": False,
            "insights": None,
        }

    def test_insights(
        self, client: TestClient, memory_store: MemoryStore, regular_history: CycleHistory
    ) -> None:
        save_history(memory_store, regular_history)
        body = client.get(f"{API}/cycles/insights").json()
        assert body["available"] is True
        insights = body["insights"]
        assert insights["regularity"] == "Regular"
        assert insights["cycle_length_status"] == "Normal"
        assert insights["next_periods"][0] == "2024-04-22"

    def test_calendar(self, client: TestClient) -> None:
        log_first_period(client)
        markers = client.get(f"{API}/cycles/calendar").json()["markers"]
        assert markers["2024-01-01"] == "period"
        assert markers["2024-01-05"] == "period"
        assert markers["2024-01-10"] == "fertile"
        assert markers["2024-01-16"] == "fertile"
        assert len(markers) == 12


class TestSettings:
    def test_reminder_defaults_and_update(self, client: TestClient) -> None:
        assert client.get(f"{API}/settings/reminders").json()["period_reminder_days"] == 2
        resp = client.put(
            f"{API}/settings/reminders",
            json={"medicationReminder": True, "medicationTimes": ["08:00"]},
        )
        assert resp.status_code == 200
        body = client.get(f"{API}/settings/reminders").json()
        assert body["medication_reminder"] is True
        assert body["medication_times"] == ["08:00"]

    def test_bad_reminder_time(self, client: TestClient) -> None:
        resp = client.put(f"{API}/settings/reminders", json={"medicationTimes": ["25:00"]})
        assert resp.status_code == 422

    def test_bad_theme(self, client: TestClient) -> None:
        assert client.put(f"{API}/settings/preferences", json={"theme": "neon"}).status_code == 422

    def test_onboarding(self, client: TestClient) -> None:
        assert client.get(f"{API}/settings/onboarding").json() == {"completed": False}
        assert client.post(f"{API}/settings/onboarding").json() == {"completed": True}
        assert client.get(f"{API}/settings/onboarding").json() == {"completed": True}

    def test_export_then_delete(self, client: TestClient) -> None:
        log_first_period(client)
        exported = client.get(f"{API}/settings/export").json()
        assert exported["cycleData"]["periodLogs"][0]["startDate"] == "2024-01-01"
        assert "exportDate" in exported

        assert client.delete(f"{API}/settings/data").status_code == 204
        assert client.get(f"{API}/cycles").json()["period_logs"] == []

    def test_corrupt_store_is_a_server_error(
        self, client: TestClient, memory_store: MemoryStore
    ) -> None:
        memory_store.set(CYCLE_DATA_KEY, "garbage")
        resp = client.get(f"{API}/cycles")
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Stored data could not be read"}


class TestSymptoms:
    def test_vocabulary_is_sorted(self, client: TestClient) -> None:
        symptoms = client.get(f"{API}/cycles/symptoms").json()["symptoms"]
        assert symptoms == sorted(symptoms)
        assert "cramps" in symptoms
        assert len(symptoms) == 8
