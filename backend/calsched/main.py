from datetime import date
from typing import Optional
from pathlib import Path
import logging

from fastapi import FastAPI, Depends, Header, Request, status, Query
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session
from sqlalchemy import text

# ── local modules ───────────────────────────────────────────────────
from . import config, grid
from .db import DB_URL, get_db
from .errors import (
    CalendarError, InvalidTransition, PermissionDenied, ScheduleNotFound, Unauthenticated, ValidationFailed,
)
from .models import ParticipantStatus
from .quickinput import parse_quick_input
from .repository import ScheduleRepository
from .schemas import (
    CalendarDayOut, CalendarOut, EventOut, ParseIn, ParseOut,
    ParticipantOut, RespondIn, ScheduleIn, ScheduleOut,
)
# ────────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Calsched API")

# ───────────────────────── CORS ─────────────────────────────────────
from fastapi.middleware.cors import CORSMiddleware

allow_origins = (
    ["*"] if "*" in config.EXTRA_CORS_ORIGINS
    else [o for o in {config.FRONTEND_ORIGIN, *config.EXTRA_CORS_ORIGINS} if o]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=86400,
)

# ───────────────────────── Error mapping ────────────────────────────
_STATUS_FOR = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    ScheduleNotFound: status.HTTP_404_NOT_FOUND,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    InvalidTransition: status.HTTP_409_CONFLICT,
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
}


def _error_body(code: str, message: str, fields: Optional[dict] = None) -> dict:
    body = {"error": code, "message": message}
    if fields:
        body["fields"] = fields
    return body


@app.exception_handler(CalendarError)
async def calendar_error_handler(request: Request, exc: CalendarError):
    code = next((c for cls, c in _STATUS_FOR.items() if isinstance(exc, cls)), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code >= 500:
        logger.exception("Unhandled calendar error on %s", request.url.path)
    fields = exc.fields if isinstance(exc, ValidationFailed) else None
    return JSONResponse(status_code=code, content=_error_body(exc.code, exc.message, fields))


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "_form"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reshape pydantic errors to field → [messages], keeping every message as written."""
    fields: dict[str, list[str]] = {}
    for err in exc.errors():
        fields.setdefault(_field_name(err.get("loc", ())), []).append(err.get("msg", "Invalid value"))
    logger.warning("Validation error for %s: %s", request.url.path, fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(ValidationFailed.code, "Request validation failed", fields),
    )


# ───────────────────────── DB migrations (optional) ─────────────────
from alembic import command
from alembic.config import Config

def run_migrations() -> None:
    app_dir = Path(__file__).resolve().parent
    cfg = Config()
    cfg.set_main_option("script_location", str(app_dir / "migrations"))
    cfg.set_main_option("sqlalchemy.url", DB_URL)
    command.upgrade(cfg, "head")

@app.on_event("startup")
def on_startup():
    if config.AUTO_MIGRATE:
        run_migrations()

# ───────────────────────── Lifecycle & health ───────────────────────
@app.get("/health")
def health_check():
    return {"status": "ok"}

@app.get("/")
def read_root():
    return {"message": "Calsched API is running."}

@app.get("/dbcheck")
def dbcheck(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"db": "ok"}

# ───────────────────────── Dependencies ─────────────────────────────
def current_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """Identity is established upstream; this service only reads it."""
    if not x_user_id or not x_user_id.strip():
        raise Unauthenticated("Missing X-User-Id header")
    return x_user_id.strip()

def get_repository(db: Session = Depends(get_db)) -> ScheduleRepository:
    return ScheduleRepository(db)

_is_holiday = None

def holiday_lookup():
    global _is_holiday
    if _is_holiday is None:
        _is_holiday = grid.holiday_oracle()
    return _is_holiday

# ───────────────────────── Calendar grid ────────────────────────────
@app.get("/calendar", response_model=CalendarOut)
def calendar_grid(
    view: str = Query(default="week"),
    on: Optional[date] = Query(default=None, alias="date"),
    is_holiday=Depends(holiday_lookup),
):
    reference = on or grid.local_today()
    try:
        days = grid.dates_for_view(view, reference, config.WEEK_START_DAY, is_holiday, grid.local_today())
    except ValueError as exc:
        raise ValidationFailed.single("view", str(exc)) from exc
    start, end = grid.visible_range(days)
    return CalendarOut(
        view=view,
        reference=reference,
        start=start,
        end=end,
        days=[CalendarDayOut.model_validate(d) for d in days],
    )

# ───────────────────────── Schedule CRUD ────────────────────────────
@app.get("/schedules", response_model=list[ScheduleOut])
def list_schedules(
    start: date = Query(...),
    end: date = Query(...),
    owner_id: Optional[str] = Query(default=None, alias="ownerId"),
    all_members: bool = Query(default=False, alias="allMembers"),
    user_id: str = Depends(current_user_id),
    repo: ScheduleRepository = Depends(get_repository),
):
    return repo.list_schedules(start, end, viewer_id=user_id, owner_id=owner_id, all_members=all_members)

@app.get("/schedules/invitations", response_model=list[ScheduleOut])
def list_invitations(
    status_filter: Optional[ParticipantStatus] = Query(default=None, alias="status"),
    user_id: str = Depends(current_user_id),
    repo: ScheduleRepository = Depends(get_repository),
):
    return repo.list_invitations(user_id, status_filter)

@app.get("/schedules/{schedule_id}", response_model=ScheduleOut)
def get_schedule(
    schedule_id: int,
    _user_id: str = Depends(current_user_id),
    repo: ScheduleRepository = Depends(get_repository),
):
    return repo.get(schedule_id)

@app.post("/schedules", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleIn,
    user_id: str = Depends(current_user_id),
    repo: ScheduleRepository = Depends(get_repository),
):
    return repo.create(user_id, payload)

@app.put("/schedules/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: int,
    payload: ScheduleIn,
    user_id: str = Depends(current_user_id),
    repo: ScheduleRepository = Depends(get_repository),
):
    return repo.update(schedule_id, user_id, payload)

@app.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(
    schedule_id: int,
    user_id: str = Depends(current_user_id),
    repo: ScheduleRepository = Depends(get_repository),
):
    repo.delete(schedule_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@app.post("/schedules/{schedule_id}/respond", response_model=ParticipantOut)
def respond_to_invite(
    schedule_id: int,
    payload: RespondIn,
    user_id: str = Depends(current_user_id),
    repo: ScheduleRepository = Depends(get_repository),
):
    return repo.respond(schedule_id, user_id, payload.decision)

# ───────────────────────── Events (read-only) ───────────────────────
@app.get("/events", response_model=list[EventOut])
def list_events(
    start: date = Query(...),
    end: date = Query(...),
    _user_id: str = Depends(current_user_id),
    repo: ScheduleRepository = Depends(get_repository),
):
    return repo.list_events(start, end)

# ───────────────────────── Quick input ──────────────────────────────
@app.post("/parse", response_model=ParseOut)
def parse_endpoint(payload: ParseIn, _user_id: str = Depends(current_user_id)):
    draft = parse_quick_input(payload.prompt, grid.local_today())
    form = draft.form
    return ParseOut(
        date=form.date or None,
        start_time=form.start_time or None,
        end_time=form.end_time or None,
        title=form.title or None,
        location_text=form.location_text or None,
        missing_fields=draft.missing,
    )
