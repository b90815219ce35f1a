import pytest
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient
from case_tracking_service.app.main import app
from case_tracking_service.app.dependencies.session import get_client_session
from case_tracking_service.app.models import Case, CaseNote, CaseStatistics, CaseStatus, CaseType
from case_tracking_service.app.service.exceptions import CaseNotFoundError, TransportError
from case_tracking_service.app.service.interfaces.case_api_client import AbstractCaseApiClient
from case_tracking_service.app.session import ClientSession

# --- Fixtures ---

def create_sample_case(case_id, **overrides) -> Case:
    data = dict(id=case_id, case_number=f"CASE-2026-{case_id:0>4}", case_type=CaseType.CIVIL)
    data.update(overrides)
    return Case(**data)

@pytest.fixture
def mock_api_client():
    return AsyncMock(spec=AbstractCaseApiClient)

@pytest.fixture
def client(mock_api_client):
    session = ClientSession(api_client=mock_api_client, periodic_refresh_seconds=3600)
    session.controller.apply_case(create_sample_case("1", priority=9, status=CaseStatus.UNDER_REVIEW))
    session.controller.apply_case(create_sample_case("2", priority=4, escalation_eligible=True, assigned_judge_id="42"))
    app.dependency_overrides = {get_client_session: lambda: session}
    yield TestClient(app)
    app.dependency_overrides = {}

# --- Tests ---

def test_remote_statistics(client: TestClient, mock_api_client):
    mock_api_client.get_statistics.return_value = CaseStatistics(
        total_cases=12, filed_cases=5, scheduled_cases=3, completed_cases=2, average_priority=6.25,
    )

    response = client.get("/api/v1/statistics")

    assert response.status_code == 200
    assert response.json() == {
        "totalCases": 12, "filedCases": 5, "scheduledCases": 3, "completedCases": 2, "averagePriority": 6.25,
    }

def test_local_statistics_use_snapshot(client: TestClient, mock_api_client):
    response = client.get("/api/v1/statistics", params={"source": "local"})

    assert response.json()["totalCases"] == 2
    assert response.json()["averagePriority"] == 6.5
    mock_api_client.get_statistics.assert_not_awaited()

def test_remote_statistics_failure_is_502(client: TestClient, mock_api_client):
    mock_api_client.get_statistics.side_effect = TransportError("Case API returned 500", status_code=500)
    assert client.get("/api/v1/statistics").status_code == 502

@pytest.mark.parametrize("path, method_name", [
    ("/api/v1/cases/subsets/high-priority", "list_high_priority_cases"),
    ("/api/v1/cases/subsets/escalation-eligible", "list_escalation_eligible_cases"),
    ("/api/v1/cases/subsets/unscheduled", "list_unscheduled_cases"),
    ("/api/v1/cases/subsets/judge/42", "list_cases_by_judge"),
])
def test_remote_subsets(client: TestClient, mock_api_client, path, method_name):
    getattr(mock_api_client, method_name).return_value = [create_sample_case("7")]

    response = client.get(path)

    assert response.status_code == 200
    assert [case["id"] for case in response.json()] == ["7"]

@pytest.mark.parametrize("path, expected_ids", [
    ("/api/v1/cases/subsets/high-priority", ["1"]),
    ("/api/v1/cases/subsets/escalation-eligible", ["2"]),
    ("/api/v1/cases/subsets/unscheduled", ["1"]),
    ("/api/v1/cases/subsets/judge/42", ["2"]),
    ("/api/v1/cases/subsets/judge/7", []),
])
def test_local_subsets(client: TestClient, path, expected_ids):
    response = client.get(path, params={"source": "local"})
    assert [case["id"] for case in response.json()] == expected_ids

def test_unknown_source_is_422(client: TestClient):
    assert client.get("/api/v1/statistics", params={"source": "cache"}).status_code == 422

def test_remote_judge_subset_passes_judge_id(client: TestClient, mock_api_client):
    mock_api_client.list_cases_by_judge.return_value = []
    assert client.get("/api/v1/cases/subsets/judge/42").json() == []
    mock_api_client.list_cases_by_judge.assert_awaited_once_with("42")

def test_case_notes_are_listed_from_the_api(client: TestClient, mock_api_client):
    mock_api_client.list_case_notes.return_value = [CaseNote(id="31", note="Witness list received")]

    response = client.get("/api/v1/cases/1/notes")

    assert response.status_code == 200
    assert response.json() == [{"id": "31", "note": "Witness list received", "createdAt": None}]
    mock_api_client.list_case_notes.assert_awaited_once_with("1")

def test_case_notes_for_missing_case_is_404(client: TestClient, mock_api_client):
    mock_api_client.list_case_notes.side_effect = CaseNotFoundError("99")
    assert client.get("/api/v1/cases/99/notes").status_code == 404
