import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from config import TEMPLATES_DIR
from datastore import DatastoreError, select_rows
from db import EngineDep, SessionDep
from feed import assemble_feed
from models import REQUEST_OPEN, ItemRequest
from .auth import OptionalUserRoleDep
from .requests import list_open_requests, submit_item_request
from .responses import submit_vendor_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ui", tags=["ui"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)


FLASH_SUCCESS = "success"
FLASH_ERROR = "error"

UNEXPECTED_ERROR = "An unexpected error occurred."
REQUEST_CREATED = "Your item request has been posted!"
REQUEST_FAILED = "Failed to create request. Please try again."
RESPONSE_SENT = "Your response has been sent!"
RESPONSE_FAILED = "Failed to send response. Please try again."
REQUEST_UNAVAILABLE = "Request not found or no longer open."


def _render(
    request: Request,
    template: str,
    context: dict,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        f"fragments/{template}",
        context,
        status_code=status_code,
    )


def _flash(kind: str, text: str) -> dict:
    return {"kind": kind, "text": text}


def _render_request_form(
    request: Request,
    form_data: Optional[dict] = None,
    errors: Optional[List[str]] = None,
    flash_message: Optional[dict] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    return _render(
        request,
        "request_form.html",
        {
            "form_data": form_data or {},
            "errors": errors or [],
            "flash_message": flash_message,
        },
        status_code=status_code,
    )


def _render_response_form(
    request: Request,
    item_request: Optional[ItemRequest],
    form_data: Optional[dict] = None,
    errors: Optional[List[str]] = None,
    flash_message: Optional[dict] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    return _render(
        request,
        "response_form.html",
        {
            "item_request": item_request,
            "form_data": form_data or {},
            "errors": errors or [],
            "flash_message": flash_message,
        },
        status_code=status_code,
    )


def _is_vendor(current: Optional[dict]) -> bool:
    return current is not None and current["role"] == "vendor"


def _get_open_request(session: SessionDep, request_id: int) -> Optional[ItemRequest]:
    item_request = session.get(ItemRequest, request_id)
    if item_request is None or item_request.status != REQUEST_OPEN:
        return None
    return item_request


@router.get("/feed", response_class=HTMLResponse)
async def feed_fragment(request: Request, bind: EngineDep):
    cards = await assemble_feed(bind)
    return _render(request, "response_cards.html", {"cards": cards})


@router.get("/requests/form", response_class=HTMLResponse)
def request_form(request: Request):
    return _render_request_form(request)


@router.post("/requests", response_class=HTMLResponse)
async def create_request_from_form(
    request: Request,
    session: SessionDep,
    current: OptionalUserRoleDep,
):
    if current is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    form = await request.form()
    form_data = {
        "description": (form.get("description") or "").strip(),
        "image_url": (form.get("image_url") or "").strip(),
    }

    if not form_data["description"]:
        return _render_request_form(
            request,
            form_data,
            ["Description is required."],
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        submit_item_request(
            session,
            current["user"],
            form_data["description"],
            form_data["image_url"],
        )
    except DatastoreError:
        return _render_request_form(
            request,
            form_data,
            flash_message=_flash(FLASH_ERROR, REQUEST_FAILED),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    except Exception:
        logger.exception("Unexpected error while posting a request")
        return _render_request_form(
            request,
            form_data,
            flash_message=_flash(FLASH_ERROR, UNEXPECTED_ERROR),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response = _render_request_form(
        request,
        flash_message=_flash(FLASH_SUCCESS, REQUEST_CREATED),
    )
    response.headers["HX-Trigger"] = json.dumps(
        {"requests-refresh": True}
    )
    return response


@router.get("/vendor/requests", response_class=HTMLResponse)
def open_requests_fragment(request: Request, session: SessionDep):
    try:
        requests_data = list_open_requests(session)
        flash_message = None
    except DatastoreError:
        requests_data = []
        flash_message = _flash(FLASH_ERROR, "Could not load requests.")
    return _render(
        request,
        "open_requests.html",
        {"requests": requests_data, "flash_message": flash_message},
    )


@router.get("/buyer/requests", response_class=HTMLResponse)
def my_requests_fragment(
    request: Request,
    session: SessionDep,
    current: OptionalUserRoleDep,
):
    if current is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    try:
        requests_data = select_rows(
            session,
            ItemRequest,
            filters={"user_id": current["user"].id},
            order_by="created_at",
            descending=True,
        )
        flash_message = None
    except DatastoreError:
        requests_data = []
        flash_message = _flash(FLASH_ERROR, "Could not load your requests.")
    return _render(
        request,
        "my_requests.html",
        {"requests": requests_data, "flash_message": flash_message},
    )


@router.get("/requests/{request_id}/respond", response_class=HTMLResponse)
def response_form(request_id: int, request: Request, session: SessionDep):
    item_request = _get_open_request(session, request_id)
    if item_request is None:
        return _render_response_form(
            request,
            None,
            flash_message=_flash(FLASH_ERROR, REQUEST_UNAVAILABLE),
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return _render_response_form(request, item_request)


@router.post("/requests/{request_id}/responses", response_class=HTMLResponse)
async def create_response_from_form(
    request_id: int,
    request: Request,
    session: SessionDep,
    current: OptionalUserRoleDep,
):
    if not _is_vendor(current):
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    item_request = _get_open_request(session, request_id)
    if item_request is None:
        return _render_response_form(
            request,
            None,
            flash_message=_flash(FLASH_ERROR, REQUEST_UNAVAILABLE),
            status_code=status.HTTP_404_NOT_FOUND,
        )

    form = await request.form()
    form_data = {
        "price": (form.get("price") or "").strip(),
        "message": (form.get("message") or "").strip(),
        "image_url": (form.get("image_url") or "").strip(),
    }

    if not form_data["message"]:
        return _render_response_form(
            request,
            item_request,
            form_data,
            ["Message is required."],
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        submit_vendor_response(
            session,
            current["user"],
            item_request,
            form_data["price"],
            form_data["message"],
            form_data["image_url"],
        )
    except DatastoreError:
        return _render_response_form(
            request,
            item_request,
            form_data,
            flash_message=_flash(FLASH_ERROR, RESPONSE_FAILED),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    except Exception:
        logger.exception("Unexpected error while sending a response")
        return _render_response_form(
            request,
            item_request,
            form_data,
            flash_message=_flash(FLASH_ERROR, UNEXPECTED_ERROR),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response = _render_response_form(
        request,
        item_request,
        flash_message=_flash(FLASH_SUCCESS, RESPONSE_SENT),
    )
    response.headers["HX-Trigger"] = json.dumps(
        {"response-sent": True}
    )
    return response
