# tests/test_api.py
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError


def parse_timestamp(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# -----------------------------------------------------------------------------
# POST /api/vitals
# -----------------------------------------------------------------------------

def test_log_vital(client, store, valid_payload, now):
    response = client.post("/api/vitals", json=valid_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == 1
    assert body["device_id"] == "device-1"
    assert body["thermal_value"] == 1
    assert body["battery_level"] == 50.0
    assert body["memory_usage"] == 60.0
    assert parse_timestamp(body["timestamp"]) == now - timedelta(minutes=1)
    assert response.headers["location"] == "/api/vitals/1"
    assert store.count() == 1


def test_log_vital_with_offset_timestamp_is_stored_in_utc(client, valid_payload):
    valid_payload["timestamp"] = "2024-01-15T13:30:00+02:00"

    response = client.post("/api/vitals", json=valid_payload)

    assert response.status_code == 201
    stored = parse_timestamp(response.json()["timestamp"])
    assert stored.utcoffset() == timedelta(0)
    assert stored.hour == 11 and stored.minute == 30


def test_missing_field(client, store, valid_payload):
    del valid_payload["battery_level"]

    response = client.post("/api/vitals", json=valid_payload)

    assert response.status_code == 400
    assert response.json() == {
        "error": "Battery level is required.",
        "field": "battery_level",
        "code": "MISSING_FIELD",
    }
    assert store.calls == []


def test_blank_device_id(client, valid_payload):
    valid_payload["device_id"] = "   "

    response = client.post("/api/vitals", json=valid_payload)

    assert response.status_code == 400
    assert response.json()["field"] == "device_id"
    assert response.json()["code"] == "MISSING_FIELD"


def test_no_body(client, store):
    response = client.post("/api/vitals")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"
    assert response.json()["field"] is None
    assert store.calls == []


def test_null_body(client):
    response = client.post("/api/vitals", content="null", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"


def test_malformed_json(client, store):
    response = client.post("/api/vitals", content="{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"
    assert response.json()["field"] is None
    assert store.calls == []


def test_wrong_type(client, valid_payload):
    valid_payload["thermal_value"] = "hot"

    response = client.post("/api/vitals", json=valid_payload)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"
    assert response.json()["field"] == "thermal_value"


def test_out_of_range(client, store, valid_payload):
    valid_payload["thermal_value"] = 4

    response = client.post("/api/vitals", json=valid_payload)

    assert response.status_code == 400
    assert response.json() == {
        "error": "Thermal value must be between 0 and 3.",
        "field": "thermal_value",
        "code": "INVALID_RANGE",
    }
    assert store.calls == []


def test_future_timestamp(client, valid_payload, now):
    valid_payload["timestamp"] = (now + timedelta(minutes=10)).isoformat()

    response = client.post("/api/vitals", json=valid_payload)

    assert response.status_code == 400
    assert response.json()["field"] == "timestamp"
    assert response.json()["code"] == "INVALID_TIMESTAMP"


# -----------------------------------------------------------------------------
# GET /api/vitals
# -----------------------------------------------------------------------------

def test_history_defaults(client, seed):
    seed([{} for _ in range(25)])

    response = client.get("/api/vitals")

    assert response.status_code == 200
    body = response.json()
    assert body["page"] == 1
    assert body["page_size"] == 20
    assert body["total_count"] == 25
    assert body["total_pages"] == 2
    assert body["has_next_page"] is True
    assert body["has_previous_page"] is False
    assert len(body["data"]) == 20
    assert body["data"][0]["id"] == 25


def test_history_second_page(client, seed):
    seed([{} for _ in range(25)])

    body = client.get("/api/vitals", params={"page": 2, "page_size": 20}).json()

    assert len(body["data"]) == 5
    assert body["has_next_page"] is False
    assert body["has_previous_page"] is True


def test_history_empty(client):
    body = client.get("/api/vitals").json()

    assert body["data"] == []
    assert body["total_count"] == 0
    assert body["total_pages"] == 0


def test_history_rejects_page_zero(client):
    response = client.get("/api/vitals", params={"page": 0})

    assert response.status_code == 400
    assert response.json()["field"] == "page"
    assert response.json()["code"] == "INVALID_RANGE"


def test_history_rejects_page_size_bounds(client):
    for page_size in (0, 101):
        response = client.get("/api/vitals", params={"page_size": page_size})

        assert response.status_code == 400
        assert response.json()["field"] == "pageSize"
        assert response.json()["code"] == "INVALID_RANGE"


def test_history_rejects_non_numeric_paging(client):
    response = client.get("/api/vitals", params={"page": "abc"})
    assert response.status_code == 400
    assert response.json()["field"] == "page"
    assert response.json()["code"] == "INVALID_RANGE"

    response = client.get("/api/vitals", params={"page_size": "lots"})
    assert response.status_code == 400
    assert response.json()["field"] == "pageSize"


# -----------------------------------------------------------------------------
# GET /api/vitals/analytics
# -----------------------------------------------------------------------------

def test_analytics_empty(client):
    response = client.get("/api/vitals/analytics")

    assert response.status_code == 200
    body = response.json()
    assert body["total_logs"] == 0
    assert body["rolling_window_logs"] == 100
    assert body["window_size"] == 100
    assert body["average_thermal"] == 0
    assert body["trend_thermal"] == "insufficient_data"
    assert body["trend_battery"] == "insufficient_data"
    assert body["trend_memory"] == "insufficient_data"


def test_analytics_after_logging(client, valid_payload, now):
    older = dict(valid_payload, timestamp=(now - timedelta(minutes=2)).isoformat())
    newer = dict(valid_payload, thermal_value=3, battery_level=80.0, memory_usage=40.0)
    assert client.post("/api/vitals", json=older).status_code == 201
    assert client.post("/api/vitals", json=newer).status_code == 201

    body = client.get("/api/vitals/analytics").json()

    assert body["total_logs"] == 2
    assert body["rolling_window_logs"] == 2
    assert body["average_thermal"] == 2.0
    assert body["average_battery"] == 65.0
    assert body["average_memory"] == 50.0
    assert body["min_thermal"] == 1
    assert body["max_thermal"] == 3
    assert body["trend_thermal"] == "increasing"
    assert body["trend_battery"] == "increasing"
    assert body["trend_memory"] == "decreasing"


# -----------------------------------------------------------------------------
# GET /api/vitals/{id}
# -----------------------------------------------------------------------------

def test_get_vital(client, seed):
    stored = seed([{}, {"thermal_value": 2}])

    response = client.get(f"/api/vitals/{stored[1].id}")

    assert response.status_code == 200
    assert response.json()["id"] == stored[1].id
    assert response.json()["thermal_value"] == 2


def test_get_vital_not_found(client):
    response = client.get("/api/vitals/999")

    assert response.status_code == 404
    assert response.json() == {
        "error": "Vital 999 not found.",
        "field": "id",
        "code": "NOT_FOUND",
    }


# -----------------------------------------------------------------------------
# Store failures, rate limiting, root endpoints
# -----------------------------------------------------------------------------

def test_store_failure_is_internal_error(make_app, store_class, valid_payload):
    class FailingStore(store_class):
        def insert(self, reading):
            raise OperationalError("INSERT INTO device_vitals", {}, Exception("disk I/O error"))

        def count(self):
            raise OperationalError("SELECT count(*)", {}, Exception("database is locked"))

    client = TestClient(make_app(target_store=FailingStore()))

    for response in (client.post("/api/vitals", json=valid_payload), client.get("/api/vitals/analytics")):
        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal server error.",
            "field": None,
            "code": "INTERNAL_ERROR",
        }
        assert "disk" not in response.text
        assert "locked" not in response.text


def test_rate_limit(make_app):
    client = TestClient(make_app(RATE_LIMIT_PERMIT=2, RATE_LIMIT_WINDOW_SECONDS=60))

    assert client.get("/api/vitals").status_code == 200
    assert client.get("/api/vitals/analytics").status_code == 200

    response = client.get("/api/vitals")

    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMIT_EXCEEDED"
    assert 1 <= int(response.headers["retry-after"]) <= 60

    # Only /api/* is limited
    assert client.get("/health").status_code == 200


def test_root(client):
    body = client.get("/").json()

    assert body["name"] == "Device Vital Monitor API"
    assert body["endpoints"]["log_vital"] == "POST /api/vitals"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["window_size"] == 100


def test_cors_preflight(client):
    response = client.options(
        "/api/vitals",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers


@pytest.mark.parametrize("timestamp", ["0001-01-01T00:00:00+01:00", "9999-12-31T23:59:59-01:00"])
def test_timestamp_outside_utc_range(client, store, valid_payload, timestamp):
    valid_payload["timestamp"] = timestamp

    response = client.post("/api/vitals", json=valid_payload)

    assert response.status_code == 400
    assert response.json()["field"] == "timestamp"
    assert response.json()["code"] == "INVALID_TIMESTAMP"
    assert store.calls == []


def test_huge_page_and_id_on_sql_store(make_app, sql_store, valid_payload):
    client = TestClient(make_app(target_store=sql_store))
    assert client.post("/api/vitals", json=valid_payload).status_code == 201

    response = client.get("/api/vitals", params={"page": 10 ** 19})

    assert response.status_code == 200
    assert response.json()["data"] == []
    assert response.json()["total_count"] == 1
    assert response.json()["has_next_page"] is False

    response = client.get(f"/api/vitals/{10 ** 19}")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
