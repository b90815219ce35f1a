# Command Handler Implementation
#
# Each handler validates locally, checks the role gate, validates the lifecycle move
# against the case as currently held, calls the case API, then dispatches a domain
# event carrying the server-confirmed case.
import logging
from typing import Any, Dict

from opentelemetry import trace
from pydantic import ValidationError

from .models import (
    CreateCaseCommand,
    UpdateCaseCommand,
    UpdateStatusCommand,
    ScheduleHearingCommand,
    AppendNoteCommand,
    SetPriorityCommand,
    RecalculatePriorityCommand,
    EscalateCourtLevelCommand,
    AssignJudgeCommand,
    UploadDocumentCommand,
)
from case_tracking_service.app.models import Case, CaseStatus, CourtLevel
from case_tracking_service.app.service.authorization import CaseAction, ensure_allowed
from case_tracking_service.app.service.events import models as domain_event_models
from case_tracking_service.app.service.events.projectors import dispatch_event_to_projectors
from case_tracking_service.app.service.exceptions import (
    IllegalEscalationError,
    ImmutableFieldError,
    InvalidInputError,
)
from case_tracking_service.app.service.lifecycle import state_machine
from case_tracking_service.app.service.priority import engine as priority_engine
from case_tracking_service.app.service.queries import format_note_entry, is_valid_case_number

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = {"id", "case_number", "filing_date"}
DEDICATED_ACTION_FIELDS = {
    "status": "use the status action",
    "priority": "use the priority action",
    "notes": "use the note action",
    "hearing_date": "use the schedule action",
    "assigned_judge_id": "use the judge assignment action",
}
# Dropped from updates; the server owns them.
SERVER_MANAGED_FIELDS = {"documents", "created_at", "updated_at", "escalation_eligible"}


def _annotate_span(command_name: str, command_id: str, case_id=None):
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", command_name)
    current_span.set_attribute("command.id", command_id)
    if case_id is not None:
        current_span.set_attribute("case.id", case_id)
    return current_span


def _require_text(value, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"Field '{field_name}' is required.")
    return str(value).strip()


def _resolve_field_name(name: str) -> str:
    if name in Case.model_fields:
        return name
    for field_name, field_info in Case.model_fields.items():
        if field_info.alias == name:
            return field_name
    raise InvalidInputError(f"Unknown case field '{name}'.")


async def handle_create_case_command(session, command: CreateCaseCommand) -> Case:
    current_span = _annotate_span("CreateCaseCommand", command.command_id)
    logger.info(f"Handling CreateCaseCommand: {command.command_id} of type {command.case_type}")

    case_type = priority_engine.parse_case_type(command.case_type)
    title = _require_text(command.title, "title")
    if command.estimated_duration_days is not None and command.estimated_duration_days < 1:
        raise InvalidInputError("estimatedDurationDays must be a positive number of days.")
    ensure_allowed(session.role, CaseAction.CREATE)

    preview_priority = priority_engine.score(case_type, command.resource_requirement, command.estimated_duration_days)
    fields: Dict[str, Any] = {
        "title": title,
        "description": command.description,
        "caseType": case_type.value,
        "status": CaseStatus.FILED.value,
        "courtLevel": CourtLevel.DISTRICT.value,
        "priority": preview_priority,
        "resourceRequirement": command.resource_requirement,
        "estimatedDurationDays": command.estimated_duration_days,
        "filingDate": (command.filing_date or session.now()).isoformat(),
        "notes": command.notes,
    }
    created = await session.api_client.create_case({key: value for key, value in fields.items() if value is not None})
    current_span.set_attribute("case.id", created.id)
    if not is_valid_case_number(created.case_number):
        logger.warning(f"Case {created.id} was assigned case number '{created.case_number}', which does not match CASE-YYYY-NNNN.")

    event = domain_event_models.CaseCreatedEvent(
        aggregate_id=created.id,
        payload=domain_event_models.CaseChangedPayload(case=created),
    )
    await dispatch_event_to_projectors(event, session)
    logger.info(f"Case {created.id} created as {created.case_number} with priority {created.priority} (preview was {preview_priority}).")
    return created


async def handle_update_case_command(session, command: UpdateCaseCommand) -> Case:
    _annotate_span("UpdateCaseCommand", command.command_id, command.case_id)
    logger.info(f"Handling UpdateCaseCommand: {command.command_id} for case {command.case_id}")

    changes = {
        field_name: value
        for field_name, value in ((_resolve_field_name(name), value) for name, value in command.changes.items())
        if field_name not in SERVER_MANAGED_FIELDS
    }
    if not changes:
        raise InvalidInputError("An update must change at least one field.")
    ensure_allowed(session.role, CaseAction.UPDATE)

    current = await session.current_case(command.case_id)
    for field_name, value in changes.items():
        # str enums compare equal to their raw values, so resubmitting the current value is allowed
        current_value = getattr(current, field_name)
        if value == current_value:
            continue
        if field_name == "court_level":
            # Escalation is the only path to another court level.
            raise IllegalEscalationError(command.case_id, current_value.value, str(value))
        if field_name in IMMUTABLE_FIELDS:
            raise ImmutableFieldError(Case.model_fields[field_name].alias or field_name)
        if field_name in DEDICATED_ACTION_FIELDS:
            raise InvalidInputError(f"Field '{field_name}' cannot be edited directly; {DEDICATED_ACTION_FIELDS[field_name]}.")

    if "case_type" in changes:
        changes["case_type"] = priority_engine.parse_case_type(changes["case_type"])
    if "title" in changes:
        changes["title"] = _require_text(changes["title"], "title")

    merged = current.model_dump()
    merged.update(changes)
    try:
        proposed = Case.model_validate(merged)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid case update: {e.error_count()} validation errors.")

    body = proposed.model_dump(by_alias=True, mode="json", exclude=SERVER_MANAGED_FIELDS)
    updated = await session.api_client.update_case(command.case_id, body)

    event = domain_event_models.CaseUpdatedEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.CaseChangedPayload(case=updated),
    )
    await dispatch_event_to_projectors(event, session)
    logger.info(f"Case {updated.id} updated fields: {sorted(changes)}")
    return updated


async def handle_update_status_command(session, command: UpdateStatusCommand) -> Case:
    current_span = _annotate_span("UpdateStatusCommand", command.command_id, command.case_id)
    logger.info(f"Handling UpdateStatusCommand: {command.command_id} for case {command.case_id} -> {command.new_status}")

    requested_status = state_machine.parse_status(command.new_status)
    ensure_allowed(session.role, CaseAction.UPDATE_STATUS)

    current = await session.current_case(command.case_id)
    target = state_machine.validate_status_transition(command.case_id, current.status, requested_status)
    current_span.add_event("StatusTransitionValidated", {"status.from": current.status.value, "status.to": target.value})

    updated = await session.api_client.update_status(command.case_id, target)

    event = domain_event_models.CaseStatusChangedEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.CaseStatusChangedPayload(
            case=updated,
            previous_status=current.status,
            new_status=updated.status,
            description=state_machine.describe_status_change(current.status, updated.status),
        ),
    )
    await dispatch_event_to_projectors(event, session)
    return updated


async def handle_schedule_hearing_command(session, command: ScheduleHearingCommand) -> Case:
    _annotate_span("ScheduleHearingCommand", command.command_id, command.case_id)
    logger.info(f"Handling ScheduleHearingCommand: {command.command_id} for case {command.case_id} at {command.hearing_date}")

    hearing_date = state_machine.validate_hearing_date(command.hearing_date, session.now())
    ensure_allowed(session.role, CaseAction.SCHEDULE_HEARING)

    current = await session.current_case(command.case_id)
    state_machine.status_after_scheduling(command.case_id, current.status)

    updated = await session.api_client.schedule_hearing(command.case_id, hearing_date)

    event = domain_event_models.HearingScheduledEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.HearingScheduledPayload(
            case=updated,
            hearing_date=hearing_date,
            previous_status=current.status,
            new_status=updated.status,
        ),
    )
    await dispatch_event_to_projectors(event, session)
    return updated


async def handle_append_note_command(session, command: AppendNoteCommand) -> Case:
    _annotate_span("AppendNoteCommand", command.command_id, command.case_id)
    logger.info(f"Handling AppendNoteCommand: {command.command_id} for case {command.case_id}")

    note_entry = format_note_entry(command.text, session.now())
    ensure_allowed(session.role, CaseAction.APPEND_NOTE)

    updated = await session.api_client.append_note(command.case_id, note_entry)

    event = domain_event_models.NoteAppendedEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.NoteAppendedPayload(case=updated, note_entry=note_entry),
    )
    await dispatch_event_to_projectors(event, session)
    return updated


async def handle_set_priority_command(session, command: SetPriorityCommand) -> Case:
    _annotate_span("SetPriorityCommand", command.command_id, command.case_id)
    logger.info(f"Handling SetPriorityCommand: {command.command_id} for case {command.case_id} -> {command.priority!r}")

    priority = state_machine.validate_priority_override(command.priority)
    ensure_allowed(session.role, CaseAction.SET_PRIORITY)

    current = await session.current_case(command.case_id)
    updated = await session.api_client.set_priority(command.case_id, priority)

    event = domain_event_models.PriorityOverriddenEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.PriorityOverriddenPayload(
            case=updated,
            previous_priority=current.priority,
            new_priority=updated.priority,
        ),
    )
    await dispatch_event_to_projectors(event, session)
    return updated


async def handle_recalculate_priority_command(session, command: RecalculatePriorityCommand) -> Case:
    current_span = _annotate_span("RecalculatePriorityCommand", command.command_id, command.case_id)
    logger.info(f"Handling RecalculatePriorityCommand: {command.command_id} for case {command.case_id}")

    ensure_allowed(session.role, CaseAction.RECALCULATE_PRIORITY)

    current = await session.current_case(command.case_id)
    expected = priority_engine.adjust_for_age(current.priority, current.status, current.filing_date, session.now())
    updated = await session.api_client.recalculate_priority(command.case_id)
    current_span.set_attribute("priority.expected", expected)
    if updated.priority != expected:
        logger.info(f"Case {updated.id} priority recalculated to {updated.priority}; the local age adjustment gave {expected}.")

    event = domain_event_models.PriorityRecalculatedEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.PriorityRecalculatedPayload(
            case=updated,
            previous_priority=current.priority,
            new_priority=updated.priority,
            expected_priority=expected,
        ),
    )
    await dispatch_event_to_projectors(event, session)
    return updated

async def handle_escalate_court_level_command(session, command: EscalateCourtLevelCommand) -> Case:
    current_span = _annotate_span("EscalateCourtLevelCommand", command.command_id, command.case_id)
    logger.info(f"Handling EscalateCourtLevelCommand: {command.command_id} for case {command.case_id} -> {command.target_level}")

    requested_level = state_machine.parse_level(command.target_level)
    ensure_allowed(session.role, CaseAction.ESCALATE)

    current = await session.current_case(command.case_id)
    target = state_machine.validate_escalation(command.case_id, current.court_level, requested_level)
    current_span.add_event("EscalationValidated", {"level.from": current.court_level.value, "level.to": target.value})
    if current.escalation_eligible is False:
        # Eligibility is evaluated by the server; a stale flag here must not block the request.
        logger.info(f"Case {command.case_id} was not marked escalation eligible in the snapshot; sending anyway.")

    updated = await session.api_client.escalate(command.case_id, target, command.reason)

    event = domain_event_models.CourtLevelEscalatedEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.CourtLevelEscalatedPayload(
            case=updated,
            previous_level=current.court_level,
            new_level=updated.court_level,
            reason=command.reason,
            description=state_machine.describe_escalation(current.court_level, updated.court_level),
        ),
    )
    await dispatch_event_to_projectors(event, session)
    return updated


async def handle_assign_judge_command(session, command: AssignJudgeCommand) -> Case:
    _annotate_span("AssignJudgeCommand", command.command_id, command.case_id)
    logger.info(f"Handling AssignJudgeCommand: {command.command_id} for case {command.case_id}, judge {command.judge_id}")

    judge_id = _require_text(command.judge_id, "judgeId")
    ensure_allowed(session.role, CaseAction.ASSIGN_JUDGE)

    updated = await session.api_client.assign_judge(command.case_id, judge_id)

    event = domain_event_models.JudgeAssignedEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.JudgeAssignedPayload(case=updated, judge_id=judge_id),
    )
    await dispatch_event_to_projectors(event, session)
    return updated


async def handle_upload_document_command(session, command: UploadDocumentCommand) -> Case:
    _annotate_span("UploadDocumentCommand", command.command_id, command.case_id)
    logger.info(f"Handling UploadDocumentCommand: {command.command_id} for case {command.case_id}, file {command.filename}")

    filename = _require_text(command.filename, "filename")
    if not command.content:
        raise InvalidInputError("Uploaded document is empty.")
    ensure_allowed(session.role, CaseAction.UPLOAD_DOCUMENT)

    document = await session.api_client.upload_document(
        command.case_id, filename, command.content, command.content_type, command.description,
    )
    # The upload endpoint returns only the document record; re-read the case to reconcile its documents.
    updated = await session.api_client.get_case(command.case_id)

    event = domain_event_models.DocumentUploadedEvent(
        aggregate_id=updated.id,
        payload=domain_event_models.DocumentUploadedPayload(case=updated, file_name=document.original_file_name),
    )
    await dispatch_event_to_projectors(event, session)
    return updated


COMMAND_HANDLERS = {
    CreateCaseCommand: handle_create_case_command,
    UpdateCaseCommand: handle_update_case_command,
    UpdateStatusCommand: handle_update_status_command,
    ScheduleHearingCommand: handle_schedule_hearing_command,
    AppendNoteCommand: handle_append_note_command,
    SetPriorityCommand: handle_set_priority_command,
    RecalculatePriorityCommand: handle_recalculate_priority_command,
    EscalateCourtLevelCommand: handle_escalate_court_level_command,
    AssignJudgeCommand: handle_assign_judge_command,
    UploadDocumentCommand: handle_upload_document_command,
}
