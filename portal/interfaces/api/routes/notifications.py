"""Notification-center endpoints and the realtime websocket."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from portal.application.use_cases.notifications import (
    create_notifications_for_communication as create_notifications_for_communication_uc,
    delete_notification as delete_notification_uc,
    get_notification_stats as get_notification_stats_uc,
    list_notifications as list_notifications_uc,
    list_unread_notifications as list_unread_notifications_uc,
    mark_all_notifications_read as mark_all_notifications_read_uc,
    mark_notification_displayed as mark_notification_displayed_uc,
    mark_notification_read as mark_notification_read_uc,
)
from portal.domain.entities import Actor, NotificationType
from portal.domain.errors import PortalError
from portal.infrastructure.database import SessionLocal, get_db
from portal.infrastructure.notifications import (
    Notifier,
    notification_manager,
    serialize_notification,
)
from portal.infrastructure.repositories import NotificationRepository
from portal.interfaces.api.dependencies import (
    get_current_actor,
    get_notifier,
    require_elevated,
    resolve_current_user,
)
from portal.interfaces.api.routes_helpers import to_http_exception
from portal.interfaces.api.schemas import (
    CreateForCommunicationRequest,
    CreateForCommunicationResponse,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationRead,
    NotificationStatsRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=NotificationListResponse)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    notification_type: NotificationType | None = Query(None, alias="type"),
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> NotificationListResponse:
    """Return the caller's active notifications, most urgent first."""

    result = list_notifications_uc(
        db,
        actor,
        page=page,
        limit=limit,
        notification_type=notification_type,
        unread_only=unread_only,
    )
    return NotificationListResponse(
        items=[NotificationRead.model_validate(item) for item in result.items],
        total=result.total,
        unread_count=result.unread_count,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get("/unread", response_model=list[NotificationRead])
def list_unread_notifications(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> list[NotificationRead]:
    """Return unread notifications and flag them as displayed."""

    items = list_unread_notifications_uc(db, actor, limit=limit)
    return [NotificationRead.model_validate(item) for item in items]


@router.get("/stats", response_model=NotificationStatsRead)
def get_notification_stats(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> NotificationStatsRead:
    stats = get_notification_stats_uc(db, actor)
    return NotificationStatsRead(
        unread=stats.unread,
        total=stats.total,
        read=stats.read,
        by_type=stats.by_type,
        unread_by_priority=stats.unread_by_priority,
    )


@router.put("/mark-all-read", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=mark_all_notifications_read_uc(db, actor))


@router.post(
    "/create-for-communication",
    response_model=CreateForCommunicationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_notifications_for_communication(
    payload: CreateForCommunicationRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    actor: Actor = Depends(require_elevated),
) -> CreateForCommunicationResponse:
    """Rebuild the notifications of a sent communication from its recipients."""

    try:
        result = create_notifications_for_communication_uc(
            db, notifier, actor, payload.communication_id
        )
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return CreateForCommunicationResponse(
        message=f"Created {result.notification_count} notifications",
        recipient_count=result.recipient_count,
        notification_count=result.notification_count,
    )


@router.put("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> NotificationRead:
    try:
        notification = mark_notification_read_uc(db, actor, notification_id)
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return NotificationRead.model_validate(notification)


@router.put("/{notification_id}/displayed", response_model=NotificationRead)
def mark_notification_displayed(
    notification_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> NotificationRead:
    try:
        notification = mark_notification_displayed_uc(db, actor, notification_id)
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return NotificationRead.model_validate(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
) -> Response:
    try:
        delete_notification_uc(db, actor, notification_id)
    except PortalError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Stream notifications to the user identified by the ``token`` query parameter."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
        actor = Actor.from_user(user)
        pending = list_unread_notifications_uc(session, actor)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        session.close()

    await notification_manager.connect(actor.user_id, websocket)
    try:
        await websocket.send_json(
            {"type": "init", "data": [serialize_notification(item) for item in pending]}
        )
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                continue
            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
            elif message_type == "ack":
                ids = message.get("ids")
                if isinstance(ids, list) and ids:
                    _acknowledge(actor.user_id, ids)
    except WebSocketDisconnect:
        pass
    finally:
        notification_manager.disconnect(actor.user_id, websocket)


def _acknowledge(user_id: int, ids: list) -> None:
    ack_session = SessionLocal()
    try:
        updated = NotificationRepository(ack_session).mark_as_read(
            [value for value in ids if isinstance(value, int)], user_id=user_id
        )
    finally:
        ack_session.close()
    logger.debug("User %s acknowledged %s notifications", user_id, updated)
