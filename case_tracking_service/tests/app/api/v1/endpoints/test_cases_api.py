import datetime
import pytest
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient
from case_tracking_service.app.main import app
from case_tracking_service.app.dependencies.session import get_client_session
from case_tracking_service.app.models import Case, CaseStatus, CaseType, CourtLevel
from case_tracking_service.app.service.exceptions import AuthorizationError, TransportError
from case_tracking_service.app.service.interfaces.case_api_client import AbstractCaseApiClient
from case_tracking_service.app.session import ClientSession

NOW = datetime.datetime(2026, 6, 10, 9, 0, tzinfo=datetime.timezone.utc)

# --- Fixtures ---

def create_sample_case(case_id: str = "1", **overrides) -> Case:
    data = dict(id=case_id, case_number=f"CASE-2026-{case_id:0>4}", title="Sample", case_type=CaseType.CIVIL)
    data.update(overrides)
    return Case(**data)

@pytest.fixture
def mock_api_client():
    return AsyncMock(spec=AbstractCaseApiClient)

def build_client(api_client, role=None, cases=()) -> TestClient:
    session = ClientSession(api_client=api_client, role=role, periodic_refresh_seconds=3600, now=lambda: NOW)
    for case in cases:
        session.controller.apply_case(case)
    app.dependency_overrides = {get_client_session: lambda: session}
    return TestClient(app)

@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides = {}

# --- POST /cases ---

def test_create_case(mock_api_client):
    mock_api_client.create_case.return_value = create_sample_case("5", case_type=CaseType.FAMILY, priority=6)
    client = build_client(mock_api_client)

    response = client.post("/api/v1/cases", json={"caseType": "FAMILY", "title": "Custody", "estimatedDurationDays": 60})

    assert response.status_code == 201
    assert response.json()["caseNumber"] == "CASE-2026-0005"
    sent = mock_api_client.create_case.await_args.args[0]
    assert sent["priority"] == 6
    assert sent["status"] == "FILED"

def test_create_case_with_unknown_type_is_400(mock_api_client):
    client = build_client(mock_api_client)
    response = client.post("/api/v1/cases", json={"caseType": "MARITIME", "title": "Salvage"})
    assert response.status_code == 400
    mock_api_client.create_case.assert_not_awaited()

def test_create_case_denied_for_role_is_403(mock_api_client):
    client = build_client(mock_api_client, role="JUDGE")
    response = client.post("/api/v1/cases", json={"caseType": "CIVIL", "title": "Boundary"})
    assert response.status_code == 403
    assert "JUDGE" in response.json()["detail"]

def test_backend_denial_is_403(mock_api_client):
    mock_api_client.create_case.side_effect = AuthorizationError("create case", status_code=403)
    client = build_client(mock_api_client)
    response = client.post("/api/v1/cases", json={"caseType": "CIVIL", "title": "Boundary"})
    assert response.status_code == 403

# --- Status and scheduling ---

def test_update_status(mock_api_client):
    mock_api_client.update_status.return_value = create_sample_case("1", status=CaseStatus.UNDER_REVIEW)
    client = build_client(mock_api_client, cases=[create_sample_case("1")])

    response = client.put("/api/v1/cases/1/status", json={"status": "UNDER_REVIEW"})

    assert response.status_code == 200
    assert response.json()["status"] == "UNDER_REVIEW"

def test_illegal_status_transition_is_400(mock_api_client):
    client = build_client(mock_api_client, cases=[create_sample_case("1", status=CaseStatus.COMPLETED)])
    response = client.put("/api/v1/cases/1/status", json={"status": "FILED"})
    assert response.status_code == 400
    mock_api_client.update_status.assert_not_awaited()

def test_schedule_hearing_in_the_past_is_400(mock_api_client):
    client = build_client(mock_api_client, cases=[create_sample_case("1", status=CaseStatus.UNDER_REVIEW)])
    response = client.put("/api/v1/cases/1/schedule", json={"hearingDate": "2026-06-01T09:00:00Z"})
    assert response.status_code == 400

def test_schedule_hearing(mock_api_client):
    hearing = datetime.datetime(2026, 7, 1, 9, 0, tzinfo=datetime.timezone.utc)
    mock_api_client.schedule_hearing.return_value = create_sample_case("1", status=CaseStatus.SCHEDULED, hearing_date=hearing)
    client = build_client(mock_api_client, cases=[create_sample_case("1", status=CaseStatus.UNDER_REVIEW)])

    response = client.put("/api/v1/cases/1/schedule", json={"hearingDate": "2026-07-01T09:00:00Z"})

    assert response.status_code == 200
    assert response.json()["status"] == "SCHEDULED"
    mock_api_client.schedule_hearing.assert_awaited_once_with("1", hearing)

# --- Other actions ---

def test_append_note(mock_api_client):
    mock_api_client.append_note.return_value = create_sample_case("1", notes="[2026-06-10 09:00:00] Adjourned")
    client = build_client(mock_api_client)

    response = client.post("/api/v1/cases/1/notes", json={"note": "Adjourned"})

    assert response.status_code == 200
    mock_api_client.append_note.assert_awaited_once_with("1", "[2026-06-10 09:00:00] Adjourned")

@pytest.mark.parametrize("priority", [0, 11, "high", 2.5])
def test_invalid_priority_is_400(mock_api_client, priority):
    client = build_client(mock_api_client)
    response = client.put("/api/v1/cases/1/priority", json={"priority": priority})
    assert response.status_code == 400
    mock_api_client.set_priority.assert_not_awaited()

def test_recalculate_priority(mock_api_client):
    mock_api_client.recalculate_priority.return_value = create_sample_case("1", priority=7)
    client = build_client(mock_api_client, cases=[create_sample_case("1", priority=5)])

    response = client.post("/api/v1/cases/1/priority/recalculate")

    assert response.status_code == 200
    assert response.json()["priority"] == 7
    mock_api_client.recalculate_priority.assert_awaited_once_with("1")

def test_recalculate_priority_denied_for_clerk_is_403(mock_api_client):
    client = build_client(mock_api_client, role="CLERK", cases=[create_sample_case("1")])
    response = client.post("/api/v1/cases/1/priority/recalculate")
    assert response.status_code == 403
    mock_api_client.recalculate_priority.assert_not_awaited()

def test_escalate(mock_api_client):
    mock_api_client.escalate.return_value = create_sample_case("1", court_level=CourtLevel.HIGH)
    client = build_client(mock_api_client, cases=[create_sample_case("1")])

    response = client.put("/api/v1/cases/1/escalate", json={"targetLevel": "HIGH", "reason": "Appeal"})

    assert response.status_code == 200
    assert response.json()["courtLevel"] == "HIGH"

def test_escalate_downwards_is_400(mock_api_client):
    client = build_client(mock_api_client, cases=[create_sample_case("1", court_level=CourtLevel.HIGH)])
    response = client.put("/api/v1/cases/1/escalate", json={"targetLevel": "DISTRICT"})
    assert response.status_code == 400

def test_assign_judge(mock_api_client):
    mock_api_client.assign_judge.return_value = create_sample_case("1", assigned_judge_id="42")
    client = build_client(mock_api_client)

    response = client.put("/api/v1/cases/1/assign-judge", json={"judgeId": "42"})

    assert response.status_code == 200
    assert response.json()["assignedJudgeId"] == "42"

def test_update_case_number_is_400(mock_api_client):
    client = build_client(mock_api_client, cases=[create_sample_case("1")])
    response = client.put("/api/v1/cases/1", json={"caseNumber": "CASE-2026-7777"})
    assert response.status_code == 400
    assert "caseNumber" in response.json()["detail"]

def test_update_cannot_replace_notes_or_judge(mock_api_client):
    client = build_client(mock_api_client, role="CLERK", cases=[create_sample_case("1", notes="[2026-06-01 10:00:00] Filed")])

    notes_response = client.put("/api/v1/cases/1", json={"notes": ""})
    judge_response = client.put("/api/v1/cases/1", json={"assignedJudgeId": "42"})

    assert notes_response.status_code == 400
    assert judge_response.status_code == 400
    assert "judge assignment action" in judge_response.json()["detail"]
    mock_api_client.update_case.assert_not_awaited()

def test_backend_failure_is_502(mock_api_client):
    mock_api_client.update_status.side_effect = TransportError("Case API request timed out")
    client = build_client(mock_api_client, cases=[create_sample_case("1")])
    response = client.put("/api/v1/cases/1/status", json={"status": "DISMISSED"})
    assert response.status_code == 502

def test_unexpected_failure_is_500(mock_api_client):
    mock_api_client.assign_judge.side_effect = RuntimeError("boom")
    client = build_client(mock_api_client)
    response = client.put("/api/v1/cases/1/assign-judge", json={"judgeId": "42"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to assign a judge to case 1"
