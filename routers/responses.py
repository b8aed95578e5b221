import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from sqlmodel import Session

from datastore import DatastoreError, insert, select_rows
from db import EngineDep, SessionDep
from feed import assemble_feed
from models import REQUEST_OPEN, RESPONSE_PENDING, ItemRequest, User, VendorResponse
from schemas import ResponseCard, VendorResponseCreate
from .auth import UserRoleDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["responses"])

CENTS = Decimal("0.01")
# vendor_responses.price is NUMERIC(10, 2): at most 8 integer digits
MAX_PRICE = Decimal("1e8")


def parse_price(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse a price typed into the response form.

    Blank input means no price. Anything that is not a finite, non-negative
    number is dropped (logged, stored as no price) rather than rejected.
    """
    text = (text or "").strip()
    if not text:
        return None
    try:
        price = Decimal(text).quantize(CENTS)
    except InvalidOperation:
        price = None
    if price is None or price.is_nan() or price < 0 or price >= MAX_PRICE:
        logger.warning("Ignoring invalid price %r", text)
        return None
    # "-0" parses to Decimal("-0.00")
    return abs(price)


def submit_vendor_response(
    session: Session,
    vendor: Optional[User],
    item_request: Optional[ItemRequest],
    price_text: Optional[str],
    message: str,
    image_url: Optional[str] = None,
) -> Optional[VendorResponse]:
    """
    Answer ``item_request`` as ``vendor`` with a pending response.

    Returns None without writing when either is missing. A vendor may answer
    the same request any number of times.
    """
    if vendor is None or item_request is None:
        return None

    message = (message or "").strip()
    if not message:
        raise ValueError("Message is required.")

    response = VendorResponse(
        vendor_id=vendor.id,
        request_id=item_request.id,
        price=parse_price(price_text),
        message=message,
        image_url=(image_url or "").strip() or None,
        status=RESPONSE_PENDING,
    )
    insert(session, response)
    logger.info(
        "Vendor %s responded to request %s (response %s)",
        vendor.id, item_request.id, response.id,
    )
    return response


@router.get("/feed", response_model=List[ResponseCard])
async def response_feed(bind: EngineDep):
    """Landing page feed of recent vendor responses."""
    return await assemble_feed(bind)


@router.post("/", response_model=VendorResponse, status_code=201)
def create_response(
    response_data: VendorResponseCreate,
    session: SessionDep,
    current: UserRoleDep,
):
    if current["role"] != "vendor":
        raise HTTPException(status_code=403, detail="Only vendors can respond to requests")

    item_request = session.get(ItemRequest, response_data.request_id)
    if item_request is None:
        raise HTTPException(status_code=404, detail="Request not found")
    if item_request.status != REQUEST_OPEN:
        raise HTTPException(status_code=400, detail="Request is no longer open")

    price_text = str(response_data.price) if response_data.price is not None else None
    try:
        return submit_vendor_response(
            session,
            current["user"],
            item_request,
            price_text,
            response_data.message,
            response_data.image_url,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except DatastoreError:
        raise HTTPException(status_code=503, detail="Failed to send response")


@router.get("/", response_model=List[VendorResponse])
def list_responses(
    session: SessionDep,
    request_id: Optional[int] = None,
    vendor_id: Optional[int] = None,
    limit: Optional[int] = None,
):
    filters = {}
    if request_id is not None:
        filters["request_id"] = request_id
    if vendor_id is not None:
        filters["vendor_id"] = vendor_id
    try:
        return select_rows(
            session,
            VendorResponse,
            filters=filters,
            order_by="created_at",
            descending=True,
            limit=limit,
        )
    except DatastoreError:
        raise HTTPException(status_code=503, detail="Failed to load responses")
