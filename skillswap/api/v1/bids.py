"""Bid negotiation endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Header, status

from skillswap.api.v1._authz import authorize
from skillswap.database.db import get_db_session
from skillswap.schemas import (
    BidRejectRequest,
    BidSubmitRequest,
    CounterOfferAcceptRequest,
    CounterOfferRequest,
    envelope,
)
from skillswap.services import dispatcher as side_effects
from skillswap.services.bid_service import BidService
from skillswap.services.bid_store import BidStore

router = APIRouter(tags=["bids"])


# Static paths first so they are not read as a project id.


@router.get("/projects/bids/freelancer")
def list_my_bids(authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    user = authorize(authorization, scopes=["bids.submit"])
    with get_db_session() as session:
        bids, stats = BidService(session, side_effects.get_dispatcher()).list_freelancer_bids(user.user_id)
        return envelope({"bids": [BidStore.to_standalone(bid) for bid in bids], "stats": stats})


@router.get("/projects/client/recent-bids")
def list_recent_bids(authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    user = authorize(authorization, scopes=["bids.decide"])
    with get_db_session() as session:
        bids = BidService(session, side_effects.get_dispatcher()).recent_bids_for_client(user.user_id)
        return envelope([BidStore.to_standalone(bid) for bid in bids])


@router.post("/projects/{project_id}/bids", status_code=status.HTTP_201_CREATED)
def submit_bid(
    project_id: int,
    payload: BidSubmitRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["bids.submit"])
    with get_db_session() as session:
        bid = BidService(session, side_effects.get_dispatcher()).submit_bid(
            project_id,
            user.user_id,
            {
                **payload.model_dump(exclude={"milestones"}),
                "milestones": [item.model_dump(by_alias=True) for item in payload.milestones],
            },
        )
        return envelope(BidStore.to_standalone(bid), "Bid submitted successfully")


@router.get("/projects/{project_id}/bids")
def list_project_bids(project_id: int, authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    user = authorize(authorization, scopes=["bids.read"])
    with get_db_session() as session:
        bids = BidService(session, side_effects.get_dispatcher()).list_project_bids(
            project_id, user.user_id, is_admin=user.is_admin
        )
        return envelope([BidStore.to_embedded(bid) for bid in bids])


@router.put("/projects/{project_id}/bids/withdraw")
def withdraw_bid(project_id: int, authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    user = authorize(authorization, scopes=["bids.submit"])
    with get_db_session() as session:
        bid = BidService(session, side_effects.get_dispatcher()).withdraw_bid(project_id, user.user_id)
        return envelope(BidStore.to_standalone(bid), "Bid withdrawn successfully")


@router.put("/projects/{project_id}/bids/{bid_id}/accept")
def accept_bid(
    project_id: int,
    bid_id: int,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["bids.decide"])
    with get_db_session() as session:
        service = BidService(session, side_effects.get_dispatcher())
        project = service.accept_bid(project_id, bid_id, user.user_id)
        return envelope({"project": service.projects.to_view(project, user.user_id)}, "Bid accepted successfully")


@router.put("/projects/{project_id}/bids/{bid_id}/reject")
def reject_bid(
    project_id: int,
    bid_id: int,
    payload: BidRejectRequest | None = None,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["bids.decide"])
    reason = payload.rejection_reason if payload is not None else None
    with get_db_session() as session:
        bid = BidService(session, side_effects.get_dispatcher()).reject_bid(
            project_id, bid_id, user.user_id, rejection_reason=reason
        )
        return envelope(BidStore.to_standalone(bid), "Bid rejected successfully")


@router.put("/projects/{project_id}/bids/{bid_id}/counter")
def counter_bid(
    project_id: int,
    bid_id: int,
    payload: CounterOfferRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["bids.decide"])
    with get_db_session() as session:
        bid = BidService(session, side_effects.get_dispatcher()).counter_bid(
            project_id,
            bid_id,
            user.user_id,
            amount=payload.amount,
            delivery_time=payload.delivery_time,
            message=payload.message,
        )
        return envelope(BidStore.to_standalone(bid), "Counter offer sent successfully")


@router.put("/projects/{project_id}/bids/{bid_id}/counter/accept")
def accept_counter_offer(
    project_id: int,
    bid_id: int,
    payload: CounterOfferAcceptRequest | None = None,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["bids.respond"])
    payload = payload or CounterOfferAcceptRequest()
    with get_db_session() as session:
        bid = BidService(session, side_effects.get_dispatcher()).accept_counter_offer(
            project_id,
            bid_id,
            user.user_id,
            amount=payload.amount,
            delivery_time=payload.delivery_time,
        )
        return envelope(BidStore.to_standalone(bid), "Counter offer accepted successfully")


@router.put("/projects/{project_id}/bids/{bid_id}/counter/reject")
def reject_counter_offer(
    project_id: int,
    bid_id: int,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["bids.respond"])
    with get_db_session() as session:
        bid = BidService(session, side_effects.get_dispatcher()).reject_counter_offer(
            project_id, bid_id, user.user_id
        )
        return envelope(BidStore.to_standalone(bid), "Counter offer rejected successfully")
