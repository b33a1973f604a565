import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from herdbook.api.auth import router as auth_router
from herdbook.api.users import router as users_router
from herdbook.config import settings
from herdbook.database import engine, init_db
from herdbook.services.accounts import bootstrap_admin_if_needed
from herdbook.services.sessions import purge_expired_sessions

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


async def _sweep_sessions(interval_minutes: int):
    """Periodically drop expired session rows. Validation never depends on it."""
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            with Session(engine) as session:
                purge_expired_sessions(session)
        except SQLAlchemyError:
            logger.exception("Session sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    with Session(engine) as session:
        admin = bootstrap_admin_if_needed(session)
        if admin:
            logger.info(f"Bootstrapped admin account {admin.email}")

    sweeper = None
    if settings.session_sweep_interval_minutes > 0:
        sweeper = asyncio.create_task(
            _sweep_sessions(settings.session_sweep_interval_minutes)
        )
    yield
    if sweeper:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(title="Herdbook", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed input is an invalid argument, same as a failed field check."""
    fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
    return JSONResponse(
        status_code=400,
        content={"detail": f"invalid request: {', '.join(fields)}"},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "internal error"})


app.include_router(auth_router)
app.include_router(users_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
