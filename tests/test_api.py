from pathlib import Path

import psycopg
import pytest
from fastapi.testclient import TestClient

from penal_code_calculator.api import main as api_main
from penal_code_calculator.api.schemas import MAX_CLAUSE_LENGTH
from penal_code_calculator.catalog import load_catalog
from penal_code_calculator.core.types import SavedCalculation

FIXTURES = Path(__file__).parent / "fixtures"


class FakeRepository:
    def __init__(self):
        self.saved: dict[int, SavedCalculation] = {}

    def save_calculation(self, name, snapshot, notes=""):
        calculation_id = len(self.saved) + 1
        self.saved[calculation_id] = SavedCalculation(
            calculation_id=calculation_id,
            name=name,
            snapshot=snapshot,
            notes=notes,
            created_at="2026-01-01T00:00:00+00:00",
        )
        return calculation_id

    def list_calculations(self, limit=50):
        return list(self.saved.values())[:limit]

    def fetch_calculation(self, calculation_id):
        return self.saved.get(calculation_id)

    def delete_calculation(self, calculation_id):
        return self.saved.pop(calculation_id, None) is not None


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def client(monkeypatch, repository):
    catalog = load_catalog(FIXTURES / "penal_code.json")
    monkeypatch.setattr(api_main, "get_catalog", lambda: catalog)
    monkeypatch.setattr(api_main, "get_repository", lambda: repository)
    return TestClient(api_main.app)


def test_health(client):
    response = client.get("/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_parse_endpoint(client):
    response = client.post(
        "/v1/parse",
        json={"fine_text": "$5,000 - $15,000", "punishment_text": "6 months - 3 years imprisonment"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["fine"]["min"] == 5000
    assert body["fine"]["pattern"] == "range"
    assert body["jail"]["min_days"] == 180
    assert body["jail"]["max_days"] == 1095
    assert body["fine_display"] == "$5,000 - $15,000"
    assert body["jail_display"] == "6 months - 3 years"
    assert body["validation"]["is_valid"] is True


def test_parse_endpoint_reports_gaps(client):
    response = client.post("/v1/parse", json={"fine_text": "Community service"})
    body = response.json()
    assert body["fine"]["pattern"] == "unparsed"
    assert body["validation"]["warnings"] == ["Fine text exists but no amount was parsed"]


def test_parse_endpoint_rejects_unknown_fields(client):
    response = client.post("/v1/parse", json={"fine": "$10"})
    assert response.status_code == 422


def test_calculate_from_catalog_ids(client):
    response = client.post("/v1/calculate", json={"offense_ids": ["title-1-103", "title-2-201"]})
    assert response.status_code == 200
    body = response.json()
    assert body["total_fine_min"] == 7500
    assert body["total_fine_max"] == 25000
    assert body["total_jail_min_days"] == 180 + 365
    assert body["total_jail_max_days"] == 1095 + 1825
    assert [entry["code"] for entry in body["breakdown"]] == ["1 03", "2 01"]
    assert body["fine_display"] == "$7,500 - $25,000"
    assert body["calculation_id"] is None


def test_calculate_with_inline_offenses(client):
    response = client.post(
        "/v1/calculate",
        json={
            "offenses": [
                {"offense_id": "x1", "fine_text": "$1,000 - $5,000", "punishment_text": "30 - 90 days"},
                {"offense_id": "x2", "fine_text": "$2,000 - $8,000", "punishment_text": "60 - 180 days"},
            ]
        },
    )
    body = response.json()
    assert body["total_fine_min"] == 3000
    assert body["total_fine_max"] == 13000
    assert body["total_jail_min_days"] == 90
    assert body["total_jail_max_days"] == 270


def test_calculate_empty_selection(client):
    response = client.post("/v1/calculate", json={})
    assert response.status_code == 422
    assert "at least one offense" in response.json()["detail"]


def test_calculate_unknown_offense(client):
    response = client.post("/v1/calculate", json={"offense_ids": ["title-9-999"]})
    assert response.status_code == 404


def test_calculate_and_save(client, repository):
    response = client.post(
        "/v1/calculate",
        json={"offense_ids": ["title-1-101"], "save_as": "Murder case", "notes": "draft"},
    )
    body = response.json()
    assert body["calculation_id"] == 1
    assert body["jail_display"] == "Life Imprisonment"
    assert repository.saved[1].name == "Murder case"

    listing = client.get("/v1/calculations").json()
    assert [item["name"] for item in listing["results"]] == ["Murder case"]

    fetched = client.get("/v1/calculations/1").json()
    assert fetched["notes"] == "draft"
    assert fetched["calculation"]["total_fine_max"] == 100000

    assert client.delete("/v1/calculations/1").status_code == 200
    assert client.get("/v1/calculations/1").status_code == 404
    assert client.delete("/v1/calculations/1").status_code == 404


def test_search_offenses(client):
    response = client.get("/v1/offenses/search", params={"q": "theft"})
    assert response.status_code == 200
    results = response.json()["results"]
    assert results[0]["offense_id"] == "title-2-201"
    assert results[0]["severity_score"] == 10 + 18


class OfflineRepository:
    def _fail(self, *args, **kwargs):
        raise psycopg.OperationalError("connection refused")

    fetch_offenses = search_offenses = save_calculation = _fail
    list_calculations = fetch_calculation = delete_calculation = _fail


@pytest.fixture
def offline_client(monkeypatch):
    monkeypatch.setattr(api_main, "get_catalog", lambda: None)
    monkeypatch.setattr(api_main, "get_repository", lambda: OfflineRepository())
    return TestClient(api_main.app)


@pytest.mark.parametrize(
    "method, path, kwargs",
    [
        ("get", "/v1/offenses/search", {"params": {"q": "theft"}}),
        ("get", "/v1/calculations", {}),
        ("get", "/v1/calculations/1", {}),
        ("delete", "/v1/calculations/1", {}),
        ("post", "/v1/calculate", {"json": {"offense_ids": ["title-2-201"]}}),
    ],
)
def test_database_outage_returns_503(offline_client, method, path, kwargs):
    response = getattr(offline_client, method)(path, **kwargs)
    assert response.status_code == 503
    assert response.json()["detail"] == "Database unavailable"


def test_calculate_save_outage_returns_503(monkeypatch, client):
    monkeypatch.setattr(api_main, "get_repository", lambda: OfflineRepository())
    response = client.post("/v1/calculate", json={"offense_ids": ["title-2-201"], "save_as": "draft"})
    assert response.status_code == 503


def test_calculate_death_penalty_display(client):
    response = client.post(
        "/v1/calculate",
        json={
            "offenses": [
                {"offense_id": "x1", "punishment_text": "Death penalty"},
                {"offense_id": "x2", "punishment_text": "30 days"},
            ]
        },
    )
    body = response.json()
    assert body["total_jail_max_days"] == 999999 + 30
    assert body["jail_display"] == "Death Penalty"


def test_parse_rejects_oversized_clause(client):
    response = client.post("/v1/parse", json={"fine_text": "1" * (MAX_CLAUSE_LENGTH + 1)})
    assert response.status_code == 422
