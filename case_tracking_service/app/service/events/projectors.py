# Event Projectors and Dispatcher
import logging

from opentelemetry.trace import SpanKind, get_current_span
from opentelemetry.trace.status import Status, StatusCode

from . import models as domain_event_models
from case_tracking_service.app.observability import tracer, domain_events_processed_counter

logger = logging.getLogger(__name__)

# --- Specific Projector Functions ---

async def project_case_into_snapshot(event: domain_event_models.BaseEvent, session):
    """Upserts the server-confirmed case carried by the event into the session's snapshot."""
    case = event.payload.case
    snapshot = session.controller.apply_case(case)
    logger.info(f"Projected {event.event_type} for case {event.aggregate_id} into snapshot generation {snapshot.generation}.")

async def signal_other_tabs(event: domain_event_models.BaseEvent, session):
    session.controller.signal_other_observers()
    logger.debug(f"Signalled other observers after {event.event_type} on case {event.aggregate_id}.")

# --- Event Dispatcher ---
RECONCILE_AND_SIGNAL = [project_case_into_snapshot, signal_other_tabs]

EVENT_PROJECTORS = {
    "CaseCreated": RECONCILE_AND_SIGNAL,
    "CaseUpdated": RECONCILE_AND_SIGNAL,
    "CaseStatusChanged": RECONCILE_AND_SIGNAL,
    "HearingScheduled": RECONCILE_AND_SIGNAL,
    "NoteAppended": RECONCILE_AND_SIGNAL,
    "PriorityOverridden": RECONCILE_AND_SIGNAL,
    "PriorityRecalculated": RECONCILE_AND_SIGNAL,
    "CourtLevelEscalated": RECONCILE_AND_SIGNAL,
    "JudgeAssigned": RECONCILE_AND_SIGNAL,
    "DocumentUploaded": RECONCILE_AND_SIGNAL,
}

async def project_event_with_tracing_and_metrics(projector_func, event: domain_event_models.BaseEvent, session):
    event_type_str = event.event_type
    with tracer.start_as_current_span(f"projector.{event_type_str}.{projector_func.__name__}", kind=SpanKind.INTERNAL) as proj_span:
        proj_span.set_attribute("event.id", event.event_id)
        proj_span.set_attribute("event.type", event_type_str)
        proj_span.set_attribute("aggregate.id", event.aggregate_id)
        proj_span.set_attribute("projector.function", projector_func.__name__)
        logger.debug(f"Projector {projector_func.__name__} starting for event {event.event_id}")
        try:
            await projector_func(event, session)
            if hasattr(domain_events_processed_counter, "add"):
                domain_events_processed_counter.add(1, {"projector.name": projector_func.__name__})
            proj_span.set_status(Status(StatusCode.OK))
        except Exception as e:
            logger.error(f"Error in projector {projector_func.__name__} for event {event.event_id}: {e}", exc_info=True)
            proj_span.record_exception(e)
            proj_span.set_status(Status(StatusCode.ERROR, description=f"Projector Error: {type(e).__name__}"))
            raise

async def dispatch_event_to_projectors(event: domain_event_models.BaseEvent, session):
    current_span = get_current_span()
    event_type_str = event.event_type
    current_span.add_event("DispatchingToProjectors", {"event.type": event_type_str, "event.id": event.event_id})
    logger.debug(f"Dispatching event: {event_type_str} (ID: {event.event_id}) to projectors.")

    projector_functions_for_event_type = EVENT_PROJECTORS.get(event_type_str)
    if not projector_functions_for_event_type:
        logger.debug(f"No projectors registered for event type: {event_type_str}")
        return

    for projector_func in projector_functions_for_event_type:
        try:
            await project_event_with_tracing_and_metrics(projector_func, event, session)
        except Exception as e:
            # The backend already accepted the change; a failed projection is healed by the next refresh.
            logger.error(f"Dispatch loop encountered an error for projector {projector_func.__name__} processing event {event.event_id}: {e}", exc_info=True)
