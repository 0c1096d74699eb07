"""Routes to author, distribute and read communications."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from portal.application.use_cases.communication_stats import (
    get_communication_stats as get_communication_stats_uc,
    get_read_stats,
)
from portal.application.use_cases.communications import (
    FanOutResult,
    create_communication as create_communication_uc,
    delete_communication as delete_communication_uc,
    dispatch_due_communications as dispatch_due_communications_uc,
    dispatch_scheduled_communication as dispatch_scheduled_communication_uc,
    get_communication as get_communication_uc,
    list_admin_communications as list_admin_communications_uc,
    list_communication_recipients as list_communication_recipients_uc,
    list_inbox as list_inbox_uc,
    list_sent_communications as list_sent_communications_uc,
    mark_communication_read as mark_communication_read_uc,
    schedule_communication as schedule_communication_uc,
    send_communication as send_communication_uc,
    update_communication as update_communication_uc,
)
from portal.application.use_cases.communications.list_communications import (
    CommunicationListing,
)
from portal.domain.entities import (
    Actor,
    CommunicationStatus,
    MessageType,
    RecipientType,
)
from portal.domain.errors import PortalError
from portal.infrastructure.database import get_db
from portal.infrastructure.notifications import Notifier
from portal.interfaces.api.dependencies import (
    get_current_actor,
    get_notifier,
    require_elevated,
)
from portal.interfaces.api.routes_helpers import pagination_skip, to_http_exception
from portal.interfaces.api.schemas import (
    CommunicationCreate,
    CommunicationListResponse,
    CommunicationRead,
    CommunicationSchedule,
    CommunicationStatsRead,
    CommunicationUpdate,
    CommunicationWithStatsRead,
    DispatchDueResponse,
    FanOutResponse,
    InboxItemRead,
    InboxResponse,
    ReadStatsRead,
    RecipientListResponse,
    RecipientRead,
)

router = APIRouter(prefix="/communications", tags=["communications"])


def _listing_response(
    listing: CommunicationListing, *, page: int, limit: int
) -> CommunicationListResponse:
    return CommunicationListResponse(
        items=[
            CommunicationWithStatsRead(
                **CommunicationRead.model_validate(item).model_dump(),
                stats=ReadStatsRead.model_validate(stats),
            )
            for item, stats in listing.items
        ],
        total=listing.total,
        page=page,
        limit=limit,
    )


def _fan_out_response(message: str, result: FanOutResult) -> FanOutResponse:
    return FanOutResponse(
        message=message,
        communication=CommunicationRead.model_validate(result.communication),
        recipient_count=result.recipient_count,
        notification_count=result.notification_count,
    )


@router.post("/", response_model=CommunicationRead, status_code=status.HTTP_201_CREATED)
def create_communication(
    payload: CommunicationCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> CommunicationRead:
    """Create a communication in draft status."""

    try:
        communication = create_communication_uc(
            db,
            actor,
            subject=payload.subject,
            content=payload.content,
            message_type=payload.message_type,
            recipient_type=payload.recipient_type,
            recipient_ids=payload.recipient_ids,
            priority=payload.priority,
            attachment_url=payload.attachment_url,
        )
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return CommunicationRead.model_validate(communication)


@router.get("/admin", response_model=CommunicationListResponse)
def list_admin_communications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    message_type: MessageType | None = Query(None),
    status_filter: CommunicationStatus | None = Query(None, alias="status"),
    recipient_type: RecipientType | None = Query(None),
    sent_from: datetime | None = Query(None),
    sent_to: datetime | None = Query(None),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_elevated),
) -> CommunicationListResponse:
    """List every communication with its read statistics."""

    try:
        listing = list_admin_communications_uc(
            db,
            actor,
            message_type=message_type,
            status=status_filter,
            recipient_type=recipient_type,
            sent_from=sent_from,
            sent_to=sent_to,
            search=search,
            skip=pagination_skip(page, limit),
            limit=limit,
        )
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return _listing_response(listing, page=page, limit=limit)


@router.get("/stats", response_model=CommunicationStatsRead)
def get_communication_stats(
    year: int | None = Query(None, ge=1970, le=9999),
    db: Session = Depends(get_db),
    _: Actor = Depends(require_elevated),
) -> CommunicationStatsRead:
    """Return dashboard aggregates; the monthly series covers ``year``."""

    reference = datetime(year, 12, 31) if year is not None else None
    summary = get_communication_stats_uc(db, reference=reference)
    return CommunicationStatsRead(
        year=summary.year,
        total=summary.total,
        by_message_type=summary.by_message_type,
        by_status=summary.by_status,
        monthly=summary.monthly,
        read_rate={
            "total_recipients": summary.read_rate.total_recipients,
            "total_read": summary.read_rate.total_read,
            "read_rate": summary.read_rate.read_rate,
        },
        read_rate_by_message_type={
            message_type: {
                "total_recipients": rate.total_recipients,
                "total_read": rate.total_read,
                "read_rate": rate.read_rate,
            }
            for message_type, rate in summary.read_rate_by_message_type.items()
        },
        recent=[CommunicationRead.model_validate(item) for item in summary.recent],
    )


@router.get("/inbox", response_model=InboxResponse)
def list_inbox(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> InboxResponse:
    """List the communications received by the caller."""

    inbox = list_inbox_uc(db, actor, skip=pagination_skip(page, limit), limit=limit)
    return InboxResponse(
        items=[
            InboxItemRead(
                **CommunicationRead.model_validate(communication).model_dump(),
                read_status=recipient.read_status,
                read_time=recipient.read_time,
            )
            for communication, recipient in inbox.items
        ],
        total=inbox.total,
        unread_count=inbox.unread_count,
        page=page,
        limit=limit,
    )


@router.get("/sent", response_model=CommunicationListResponse)
def list_sent_communications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> CommunicationListResponse:
    """List the communications authored by the caller."""

    listing = list_sent_communications_uc(
        db, actor, skip=pagination_skip(page, limit), limit=limit
    )
    return _listing_response(listing, page=page, limit=limit)


@router.post("/dispatch-due", response_model=DispatchDueResponse)
def dispatch_due_communications(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    _: Actor = Depends(require_elevated),
) -> DispatchDueResponse:
    """Deliver every scheduled communication whose date has passed."""

    dispatched = dispatch_due_communications_uc(db, notifier)
    return DispatchDueResponse(dispatched_ids=dispatched, count=len(dispatched))


@router.get("/{communication_id}", response_model=CommunicationWithStatsRead)
def get_communication(
    communication_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> CommunicationWithStatsRead:
    """Return a communication; recipients opening it are marked as having read it."""

    try:
        communication = get_communication_uc(db, actor, communication_id)
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return CommunicationWithStatsRead(
        **CommunicationRead.model_validate(communication).model_dump(),
        stats=ReadStatsRead.model_validate(get_read_stats(db, communication_id)),
    )


@router.put("/{communication_id}", response_model=CommunicationRead)
def update_communication(
    communication_id: int,
    payload: CommunicationUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> CommunicationRead:
    """Edit a draft communication."""

    try:
        communication = update_communication_uc(
            db, actor, communication_id, **payload.model_dump(exclude_unset=True)
        )
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return CommunicationRead.model_validate(communication)


@router.delete("/{communication_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_communication(
    communication_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> Response:
    """Delete a communication together with its recipients and notifications."""

    try:
        delete_communication_uc(db, actor, communication_id)
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{communication_id}/send", response_model=FanOutResponse)
def send_communication(
    communication_id: int,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    actor: Actor = Depends(get_current_actor),
) -> FanOutResponse:
    """Distribute a draft to its audience now."""

    try:
        result = send_communication_uc(db, notifier, actor, communication_id)
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    message = (
        "Communication sent successfully"
        if result.recipient_count
        else "Communication sent, but no recipients found"
    )
    return _fan_out_response(message, result)


@router.post("/{communication_id}/schedule", response_model=FanOutResponse)
def schedule_communication(
    communication_id: int,
    payload: CommunicationSchedule,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    actor: Actor = Depends(get_current_actor),
) -> FanOutResponse:
    """Prepare the recipients of a draft and hold it until the scheduled date."""

    try:
        result = schedule_communication_uc(
            db, notifier, actor, communication_id, payload.scheduled_date
        )
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return _fan_out_response("Communication scheduled successfully", result)


@router.post("/{communication_id}/dispatch", response_model=FanOutResponse)
def dispatch_scheduled_communication(
    communication_id: int,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    actor: Actor = Depends(get_current_actor),
) -> FanOutResponse:
    """Deliver a scheduled communication immediately."""

    try:
        result = dispatch_scheduled_communication_uc(
            db, notifier, actor, communication_id
        )
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return _fan_out_response("Communication dispatched successfully", result)


@router.put("/{communication_id}/read", response_model=RecipientRead)
def mark_communication_read(
    communication_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> RecipientRead:
    """Mark the caller's copy of a communication as read."""

    try:
        recipient = mark_communication_read_uc(db, actor, communication_id)
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return RecipientRead.model_validate(recipient)


@router.get("/{communication_id}/recipients", response_model=RecipientListResponse)
def list_communication_recipients(
    communication_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> RecipientListResponse:
    """List who received a communication and who has read it."""

    try:
        recipients, stats = list_communication_recipients_uc(db, actor, communication_id)
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return RecipientListResponse(
        recipients=[RecipientRead.model_validate(recipient) for recipient in recipients],
        stats=ReadStatsRead.model_validate(stats),
    )
