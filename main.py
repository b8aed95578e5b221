import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from config import LOG_LEVEL, STATIC_DIR, TEMPLATES_DIR
from db import EngineDep, create_db_and_tables
from feed import assemble_feed
from routers import auth, pages, requests, responses, stores, ui, users
from routers.auth import OptionalUserRoleDep

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database...")
    create_db_and_tables()
    yield
    logger.info("Shutting down Locify...")


app = FastAPI(title="Locify", lifespan=lifespan)

templates = Jinja2Templates(directory=TEMPLATES_DIR)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/", response_class=HTMLResponse)
async def read_root(
    request: Request,
    bind: EngineDep,
    current: OptionalUserRoleDep,
):
    user = current["user"] if current else None
    role = current["role"] if current else None

    cards = await assemble_feed(bind)

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "current_user": user,
            "current_role": role,
            "cards": cards,
        },
    )


@app.get("/health")
def health():
    return {"status": "healthy"}


app.include_router(auth.router)
app.include_router(users.router, prefix="/users")
app.include_router(requests.router, prefix="/requests")
app.include_router(responses.router, prefix="/responses")
app.include_router(stores.router, prefix="/stores")

app.include_router(pages.router)
app.include_router(ui.router)
