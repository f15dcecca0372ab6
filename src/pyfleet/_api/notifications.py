"""Notification procedure: notify_user."""

from __future__ import annotations

from pyfleet._api._common import call_rpc
from pyfleet._transport import Transport
from pyfleet.models.requests import UserIdRequest
from pyfleet.session import Session


async def notify_user(
    transport: Transport,
    session: Session,
    *,
    sender_id: str,
    recipient_id: str,
    title: str,
    message: str,
) -> None:
    """Insert a notification row for *recipient_id*.

    The row is fanned out to the recipient over the realtime channel.
    """
    sender = UserIdRequest(user_id=sender_id)
    recipient = UserIdRequest(user_id=recipient_id)
    await call_rpc(
        transport,
        session,
        "notify_user",
        {
            "p_sender_id": sender.user_id,
            "p_recipient_id": recipient.user_id,
            "p_title": title,
            "p_message": message,
        },
    )
