"""
harmonic.services.request_service — Ask Creation & Status Transitions
======================================================================

Every new ask goes through :meth:`QuotaTracker.enforce_quota` right before
the row is inserted.  Status changes follow a small fixed table::

    pending  → accepted | declined
    accepted → fulfilled | declined

Only the offer owner moves a request along.  Each change drops a
``request_<status>`` notification on the other party, and a fulfilment
triggers a badge sync for both sides.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from harmonic.database.models import (
    ExchangeRequest,
    Notification,
    Offer,
    OfferStatus,
    Profile,
    RequestStatus,
)
from harmonic.engine.quota import ensure_utc
from harmonic.exceptions import InvalidArgument, NotFound, PermissionDenied
from harmonic.services import badge_service
from harmonic.services.quota_service import QuotaTracker

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.ACCEPTED, RequestStatus.DECLINED}),
    RequestStatus.ACCEPTED: frozenset({RequestStatus.FULFILLED, RequestStatus.DECLINED}),
    RequestStatus.FULFILLED: frozenset(),
    RequestStatus.DECLINED: frozenset(),
}


def request_to_dict(req: ExchangeRequest) -> dict:
    return {
        "id": req.id,
        "offer_id": req.offer_id,
        "requester_profile_id": req.requester_profile_id,
        "note": req.note,
        "status": req.status,
        "created_at": req.created_at.isoformat() if req.created_at else None,
        "updated_at": req.updated_at.isoformat() if req.updated_at else None,
    }


def notify(
    session: Session,
    *,
    recipient_id: str,
    actor_id: str,
    type_: str,
    data: dict | None = None,
) -> Notification | None:
    """Queue a notification row.  Members are never notified of their own actions."""
    if not recipient_id or recipient_id == actor_id:
        return None
    row = Notification(profile_id=recipient_id, type=type_, data=data or {})
    session.add(row)
    return row


def create_request(
    engine: Engine,
    tracker: QuotaTracker,
    *,
    requester_id: str,
    offer_id: str,
    note: str,
    now: datetime | None = None,
) -> dict:
    """Ask to receive *offer_id*.

    Raises
    ------
    NotFound
        If the requester or offer doesn't exist.
    InvalidArgument
        If the note is blank, the offer isn't active, or it's the requester's own.
    QuotaExceeded
        If the requester has no asks left in the window.
    """
    text = (note or "").strip()
    if not text:
        raise InvalidArgument("A note is required when asking to receive")
    now = ensure_utc(now) if now is not None else datetime.now(UTC)

    with Session(engine) as session:
        if session.get(Profile, requester_id) is None:
            raise NotFound(f"Profile {requester_id} not found")
        offer = session.get(Offer, offer_id)
        if offer is None:
            raise NotFound(f"Offer {offer_id} not found")
        if offer.status != OfferStatus.ACTIVE:
            raise InvalidArgument(f"Offer {offer_id} is not accepting requests")
        if offer.owner_id == requester_id:
            raise InvalidArgument("You can't ask to receive your own offer")
        owner_id = offer.owner_id

    # Gate immediately before the insert.  Not atomic: see quota_service.
    tracker.enforce_quota(requester_id, now)

    with Session(engine, expire_on_commit=False) as session:
        req = ExchangeRequest(
            offer_id=offer_id,
            requester_profile_id=requester_id,
            note=text,
            status=RequestStatus.PENDING.value,
            created_at=now,
        )
        session.add(req)
        session.flush()
        notify(
            session,
            recipient_id=owner_id,
            actor_id=requester_id,
            type_="request_new",
            data={"request_id": req.id, "offer_id": offer_id},
        )
        session.commit()

    logger.info("Request %s created by %s for offer %s", req.id, requester_id, offer_id)
    return request_to_dict(req)


def set_request_status(
    engine: Engine,
    *,
    request_id: str,
    actor_id: str,
    next_status: str,
    now: datetime | None = None,
) -> dict:
    """Move a request along its lifecycle.

    Raises
    ------
    NotFound
        If the request doesn't exist.
    PermissionDenied
        If *actor_id* doesn't own the offer.
    InvalidArgument
        If *next_status* is unknown or not reachable from the current status.
    """
    try:
        target = RequestStatus(next_status)
    except ValueError:
        raise InvalidArgument(f"Unknown request status {next_status!r}") from None
    now = ensure_utc(now) if now is not None else datetime.now(UTC)

    with Session(engine, expire_on_commit=False) as session:
        req = session.get(ExchangeRequest, request_id)
        if req is None:
            raise NotFound(f"Request {request_id} not found")
        offer = session.get(Offer, req.offer_id)
        if offer is None or offer.owner_id != actor_id:
            raise PermissionDenied("Only the offer owner can change this request")

        current = RequestStatus(req.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidArgument(f"Cannot move a {current} request to {target}")

        req.status = target.value
        req.updated_at = now
        notify(
            session,
            recipient_id=req.requester_profile_id,
            actor_id=actor_id,
            type_=f"request_{target.value}",
            data={"request_id": req.id, "offer_id": offer.id},
        )
        session.commit()

    logger.info(
        "Request %s moved %s → %s by %s", request_id, current, target, actor_id,
    )
    # Badges are recorded after the status change is committed.
    awarded: dict[str, list[str]] = {}
    if target == RequestStatus.FULFILLED:
        for profile_id in (offer.owner_id, req.requester_profile_id):
            awarded[profile_id] = badge_service.sync_badges(engine, profile_id, now)
    result = request_to_dict(req)
    if awarded:
        result["badges_awarded"] = awarded
    return result
