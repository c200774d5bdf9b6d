"""
Direct messages between users, and in-app notifications.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from jamakers.auth import Principal, require_authenticated
from jamakers.authorization import message_owner, notification_owner, require_ownership
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client
from jamakers.routes.common import found, notify
from jamakers.schemas import MessageCreate
from shared.json_utils import to_json

router = APIRouter()


@router.get("/messages/threads")
@router.get("/messages/conversations")
def list_threads(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_message_threads(principal.user_id))


@router.get("/messages/{other_user_id}")
def conversation_with(
    other_user_id: str,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_messages_between_users(principal.user_id, other_user_id))


@router.post("/messages", status_code=201)
def send_message(
    payload: MessageCreate,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    message = db.create_message({**payload.values(), "sender_id": principal.user_id})
    sender = principal.user
    sender_name = (sender.first_name if sender else None) or principal.user_id
    notify(
        db,
        message.recipient_id,
        "message",
        "New message",
        f"{sender_name} sent you a message",
        f"/messages?with={principal.user_id}",
    )
    return to_json(message)


@router.put(
    "/messages/{message_id}/read",
    status_code=204,
    dependencies=[Depends(require_ownership(message_owner, "message_id"))],
)
def mark_message_read(message_id: str, db: DbClient = Depends(get_db_client)):
    if not db.mark_message_as_read(message_id):
        found(None, "Message not found")
    return Response(status_code=204)


@router.get("/notifications")
def list_notifications(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_notifications_by_user(principal.user_id))


@router.put("/notifications/read-all", status_code=204)
def mark_all_notifications_read(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    db.mark_all_notifications_as_read(principal.user_id)
    return Response(status_code=204)


@router.put(
    "/notifications/{notification_id}/read",
    status_code=204,
    dependencies=[Depends(require_ownership(notification_owner, "notification_id"))],
)
def mark_notification_read(notification_id: str, db: DbClient = Depends(get_db_client)):
    if not db.mark_notification_as_read(notification_id):
        found(None, "Notification not found")
    return Response(status_code=204)
