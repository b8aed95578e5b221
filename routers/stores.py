from typing import List

from fastapi import APIRouter, HTTPException
from sqlmodel import select

from db import SessionDep
from models import Store
from schemas import StoreUpsert
from .auth import UserRoleDep

router = APIRouter(tags=["stores"])


@router.get("/", response_model=List[Store])
def list_stores(session: SessionDep):
    return session.exec(select(Store).order_by(Store.id)).all()


@router.get("/{vendor_id}", response_model=Store)
def get_store(vendor_id: int, session: SessionDep):
    store = session.exec(select(Store).where(Store.vendor_id == vendor_id)).first()
    if store is None:
        raise HTTPException(status_code=404, detail="Store not found")
    return store


@router.post("/", response_model=Store)
def upsert_store(store_in: StoreUpsert, session: SessionDep, current: UserRoleDep):
    """
    Create the current vendor's store, or replace its name and address.
    """
    if current["role"] != "vendor":
        raise HTTPException(status_code=403, detail="Only vendors can manage a store")

    vendor_id = current["user"].id
    store = session.exec(select(Store).where(Store.vendor_id == vendor_id)).first()
    if store is None:
        store = Store(vendor_id=vendor_id, **store_in.model_dump())
    else:
        store.store_name = store_in.store_name
        store.address = store_in.address

    session.add(store)
    session.commit()
    session.refresh(store)
    return store
