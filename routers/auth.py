import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from itsdangerous import BadSignature, URLSafeTimedSerializer
from passlib.context import CryptContext
from sqlmodel import select

from config import SECRET_KEY, SESSION_MAX_AGE, TEMPLATES_DIR
from db import SessionDep
from models import User
from schemas import LoginData, UserCreate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)

SESSION_COOKIE = "session"
ROLES = ("buyer", "vendor")

serializer = URLSafeTimedSerializer(SECRET_KEY)


pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_session_token(user_id: int, role: str) -> str:
    """
    Store user_id + role in the signed token.
    Example data:
        {"user_id": 3, "role": "vendor"}
    """
    return serializer.dumps({"user_id": user_id, "role": role})


def verify_session_token(token: str, max_age_seconds: int = SESSION_MAX_AGE) -> Optional[dict]:
    """
    Returns dict {'user_id': ..., 'role': ...} if valid,
    or None if token is invalid/expired.
    """
    try:
        return serializer.loads(token, max_age=max_age_seconds)
    except BadSignature:
        return None


def _set_session_cookie(response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
    )


def get_optional_user_and_role(
    session: SessionDep,
    session_token: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
) -> Optional[dict]:
    """
    Reads the 'session' cookie and returns {"user": User, "role": str},
    or None if not logged in / invalid.
    """
    if session_token is None:
        return None

    data = verify_session_token(session_token)
    if not data:
        return None

    user = session.get(User, data["user_id"])
    if user is None:
        return None

    return {"user": user, "role": data["role"]}


OptionalUserRoleDep = Annotated[Optional[dict],
                                Depends(get_optional_user_and_role)]


def require_auth(current: OptionalUserRoleDep) -> dict:
    """Like get_optional_user_and_role, but raises 401 when not logged in."""
    if current is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return current


UserRoleDep = Annotated[dict, Depends(require_auth)]


def _auth_page(request: Request, current: Optional[dict], template: str):
    if current is not None:
        return RedirectResponse(url="/", status_code=303)
    return templates.TemplateResponse(
        request,
        template,
        {"current_user": None, "current_role": None},
    )


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, current: OptionalUserRoleDep):
    return _auth_page(request, current, "login.html")


@router.get("/register", response_class=HTMLResponse)
def register_page(request: Request, current: OptionalUserRoleDep):
    return _auth_page(request, current, "register.html")


@router.post("/register")
async def register(request: Request, session: SessionDep):
    """
    Register a new user with a hashed password.
    Accepts either JSON (API/Swagger) or form-data (from HTML form).
    """
    is_json = request.headers.get("content-type", "").startswith("application/json")

    if is_json:
        user_in = UserCreate(**(await request.json()))
        if user_in.is_vendor:
            role = "vendor"
        elif user_in.is_buyer:
            role = "buyer"
        else:
            raise HTTPException(
                status_code=400,
                detail="User must be registered as buyer or vendor",
            )
    else:
        form = await request.form()
        email = form.get("email")
        name = form.get("name")
        password = form.get("password")
        role = form.get("role")

        if not all(isinstance(v, str) and v for v in (email, name, password, role)):
            raise HTTPException(status_code=400, detail="All fields are required")
        if role not in ROLES:
            raise HTTPException(status_code=400, detail="Unknown role")

        user_in = UserCreate(
            email=email,
            name=name,
            password=password,
            is_buyer=role == "buyer",
            is_vendor=role == "vendor",
        )

    existing = session.exec(
        select(User).where(User.email == user_in.email)
    ).first()

    if existing:
        if is_json:
            raise HTTPException(status_code=400, detail="Email already registered")
        return templates.TemplateResponse(
            request,
            "register.html",
            {
                "current_user": None,
                "current_role": None,
                "error": "Email already registered",
            },
            status_code=400,
        )

    user = User(
        email=user_in.email,
        name=user_in.name,
        password_hash=hash_password(user_in.password),
        is_buyer=user_in.is_buyer,
        is_vendor=user_in.is_vendor,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Registered user %s as %s", user.id, role)

    token = create_session_token(user.id, role)

    if is_json:
        resp = JSONResponse({"message": "Registration successful", "role": role, "id": user.id})
    else:
        resp = RedirectResponse(url="/", status_code=303)
    _set_session_cookie(resp, token)
    return resp


@router.post("/login")
async def login(request: Request, session: SessionDep):
    """
    Log in with email + password + chosen role ("buyer" / "vendor"),
    set a signed cookie.

    Accepts either JSON (API/Swagger) or form-data (from HTML form).
    """
    is_json = request.headers.get("content-type", "").startswith("application/json")

    if is_json:
        payload = LoginData(**(await request.json()))
    else:
        form = await request.form()
        email = form.get("email")
        password = form.get("password")
        role = form.get("role")

        if not all(isinstance(v, str) and v for v in (email, password, role)):
            raise HTTPException(status_code=400, detail="All fields are required")

        payload = LoginData(email=email, password=password, role=role)  # type: ignore

    try:
        user = session.exec(
            select(User).where(User.email == payload.email)
        ).first()

        if user is None or not verify_password(payload.password, user.password_hash):
            raise HTTPException(status_code=400, detail="Invalid email or password")

        if payload.role == "buyer" and not user.is_buyer:
            raise HTTPException(status_code=400, detail="User is not registered as buyer")

        if payload.role == "vendor" and not user.is_vendor:
            raise HTTPException(status_code=400, detail="User is not registered as vendor")

    except HTTPException as exc:
        if is_json:
            raise
        return templates.TemplateResponse(
            request,
            "login.html",
            {"current_user": None, "current_role": None, "error": exc.detail},
            status_code=exc.status_code,
        )

    token = create_session_token(user.id, payload.role)

    if is_json:
        resp = JSONResponse({"message": "Login successful", "role": payload.role})
    else:
        resp = RedirectResponse(url="/", status_code=303)
    _set_session_cookie(resp, token)
    return resp


@router.post("/logout")
def logout():
    """
    Clear the session cookie and redirect to home.
    """
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.get("/me")
def read_me(current: UserRoleDep):
    """
    Get info about the currently logged-in user + active role.
    """
    user = current["user"]
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": current["role"],
        "is_buyer": user.is_buyer,
        "is_vendor": user.is_vendor,
    }
