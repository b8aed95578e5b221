# routers/users.py
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Response
from sqlmodel import select

from db import SessionDep
from models import ItemRequest, Store, User, VendorResponse
from schemas import UserRead
from .auth import UserRoleDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.get("/", response_model=List[UserRead])
def list_users(session: SessionDep):
    """
    List all users (debug/admin).
    """
    return session.exec(select(User)).all()


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, session: SessionDep):
    """
    Get a single user by ID.
    """
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.delete("/me", status_code=204)
def delete_own_account(
    session: SessionDep,
    current: UserRoleDep,
):
    user = current["user"]
    user_id = user.id

    # 1) Responses this user sent as a vendor
    for resp in session.exec(
        select(VendorResponse).where(VendorResponse.vendor_id == user_id)
    ).all():
        session.delete(resp)

    # 2) Requests this user posted, along with every response to them
    my_requests = session.exec(
        select(ItemRequest).where(ItemRequest.user_id == user_id)
    ).all()
    for req in my_requests:
        for resp in session.exec(
            select(VendorResponse).where(VendorResponse.request_id == req.id)
        ).all():
            session.delete(resp)
        session.delete(req)

    # 3) The store profile, if any
    store = session.exec(select(Store).where(Store.vendor_id == user_id)).first()
    if store is not None:
        session.delete(store)

    session.delete(user)
    session.commit()
    logger.info("Deleted account %s", user_id)

    return Response(status_code=204)
