# routers/pages.py
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from config import TEMPLATES_DIR
from .auth import UserRoleDep

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _dashboard(request: Request, current: dict, role: str, template: str):
    if current["role"] != role:
        return RedirectResponse(url="/", status_code=303)

    return templates.TemplateResponse(
        request,
        template,
        {
            "current_user": current["user"],
            "current_role": current["role"],
        },
    )


@router.get("/buyer", response_class=HTMLResponse)
async def buyer_dashboard(request: Request, current: UserRoleDep):
    """Buyer dashboard: post a request and track your own requests."""
    return _dashboard(request, current, "buyer", "buyer_dashboard.html")


@router.get("/vendor", response_class=HTMLResponse)
async def vendor_dashboard(request: Request, current: UserRoleDep):
    """Vendor dashboard: browse open requests and respond to them."""
    return _dashboard(request, current, "vendor", "vendor_dashboard.html")
