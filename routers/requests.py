import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from sqlmodel import Session

from datastore import DatastoreError, insert, select_rows
from db import SessionDep
from models import REQUEST_OPEN, ItemRequest, User
from schemas import ItemRequestCreate
from .auth import UserRoleDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["requests"])


def submit_item_request(
    session: Session,
    user: Optional[User],
    description: str,
    image_url: Optional[str] = None,
) -> Optional[ItemRequest]:
    """
    Post a new open item request for ``user``.

    Returns None without writing anything when there is no user. Raises
    ValueError for a blank description and DatastoreError if the insert fails.
    """
    if user is None:
        return None

    description = (description or "").strip()
    if not description:
        raise ValueError("Description is required.")

    item_request = ItemRequest(
        user_id=user.id,
        description=description,
        image_url=(image_url or "").strip() or None,
        status=REQUEST_OPEN,
    )
    insert(session, item_request)
    logger.info("User %s posted request %s", user.id, item_request.id)
    return item_request


def list_open_requests(session: Session) -> List[ItemRequest]:
    """All open requests, newest first."""
    return select_rows(
        session,
        ItemRequest,
        filters={"status": REQUEST_OPEN},
        order_by="created_at",
        descending=True,
    )


@router.get("/{request_id}", response_model=ItemRequest)
def get_request(request_id: int, session: SessionDep):
    req = session.get(ItemRequest, request_id)
    if req is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return req


@router.post("/", response_model=ItemRequest, status_code=201)
def create_request(
    request_data: ItemRequestCreate,
    session: SessionDep,
    current: UserRoleDep,
):
    try:
        return submit_item_request(
            session,
            current["user"],
            request_data.description,
            request_data.image_url,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except DatastoreError:
        raise HTTPException(status_code=503, detail="Failed to create request")


@router.get("/", response_model=List[ItemRequest])
def list_requests(
    session: SessionDep,
    status: Optional[str] = None,
    user_id: Optional[int] = None,
):
    filters = {}
    if status is not None:
        filters["status"] = status
    if user_id is not None:
        filters["user_id"] = user_id
    try:
        return select_rows(
            session,
            ItemRequest,
            filters=filters,
            order_by="created_at",
            descending=True,
        )
    except DatastoreError:
        raise HTTPException(status_code=503, detail="Failed to load requests")
