"""
Landing page feed: recent vendor responses joined with their vendor's store.

Responses and stores are read independently and matched on ``vendor_id``
here; nothing in the schema guarantees a response has a store.
"""

import asyncio
import logging
import random
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.engine import Engine
from sqlmodel import Session

from config import FEED_MOCK_FIELDS, FEED_RESPONSE_LIMIT
from datastore import DatastoreError, select_rows
from models import RESPONSE_PENDING, Store, VendorResponse
from schemas import ResponseCard

logger = logging.getLogger(__name__)

UNKNOWN_STORE = "Unknown Store"
UNKNOWN_LOCATION = "Location not specified"
NO_PRICE = "Price on request"
NO_DESCRIPTION = "No description available"

AVATAR_URL = "https://images.unsplash.com/photo-{photo_id}?w=150&h=150&fit=crop&crop=face"
AVATAR_BASE_ID = 1507003211169


def format_price(price: Optional[Decimal]) -> str:
    """Render a price as ``$<amount>`` without trailing zeros."""
    if not price:
        return NO_PRICE
    text = format(Decimal(price).normalize(), "f")
    return f"${text}"


def _mock_fields(rng: random.Random) -> Tuple[float, str, str]:
    # Placeholder demo data; there is no rating or geolocation model yet.
    rating = 4.5 + rng.random() * 0.5
    distance = f"{rng.random() * 2 + 0.1:.1f} mi"
    response_time = f"{int(rng.random() * 30 + 1)} min ago"
    return rating, distance, response_time


def build_response_cards(
    responses: Sequence[VendorResponse],
    stores: Sequence[Store],
    rng: Optional[random.Random] = None,
    mock_fields: bool = FEED_MOCK_FIELDS,
) -> List[ResponseCard]:
    """Join responses to stores by vendor id and shape them for display."""
    rng = rng or random.Random()
    store_map: Dict[int, Store] = {store.vendor_id: store for store in stores}

    cards = []
    for index, response in enumerate(responses):
        store = store_map.get(response.vendor_id)
        if store is None:
            logger.debug("No store for vendor %s", response.vendor_id)

        rating, distance, response_time = (
            _mock_fields(rng) if mock_fields else (None, None, None)
        )
        cards.append(
            ResponseCard(
                name=store.store_name if store and store.store_name else UNKNOWN_STORE,
                avatar=AVATAR_URL.format(photo_id=AVATAR_BASE_ID + index * 1000),
                rating=rating,
                distance=distance,
                response_time=response_time,
                price=format_price(response.price),
                stock="Available" if response.status == RESPONSE_PENDING else response.status,
                description=response.message or NO_DESCRIPTION,
                image=response.image_url or "",
                location=store.address if store and store.address else UNKNOWN_LOCATION,
            )
        )
    return cards


def _read_responses(bind: Engine, limit: int) -> List[VendorResponse]:
    with Session(bind) as session:
        return select_rows(session, VendorResponse, limit=limit)


def _read_stores(bind: Engine) -> List[Store]:
    with Session(bind) as session:
        return select_rows(session, Store)


async def assemble_feed(
    bind: Engine,
    limit: int = FEED_RESPONSE_LIMIT,
    rng: Optional[random.Random] = None,
    mock_fields: bool = FEED_MOCK_FIELDS,
) -> List[ResponseCard]:
    """
    Read responses and stores concurrently, then join them.

    Both reads must succeed; if either fails the feed is empty.
    """
    try:
        responses, stores = await asyncio.gather(
            asyncio.to_thread(_read_responses, bind, limit),
            asyncio.to_thread(_read_stores, bind),
        )
    except DatastoreError as exc:
        logger.error("Feed assembly aborted: %s", exc)
        return []

    return build_response_cards(responses, stores, rng=rng, mock_fields=mock_fields)
