from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from database import DB_NAME, ExerciseStore, create_client
from deps import get_store, load_user, read_body
from errors import PersistenceFailure, register_error_handlers
from models import (
    ExerciseCreate,
    ExerciseLog,
    ExerciseOut,
    LogEntry,
    UserCreate,
    UserOut,
    format_date,
    parse_date,
    parse_int,
    resolve_exercise_date,
)


load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="[%(asctime)s] %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
MAX_LIMIT = 2**63 - 1


app = FastAPI(title="Exercise Tracker")


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

if (BASE_DIR / "public").is_dir():
    app.mount("/public", StaticFiles(directory=BASE_DIR / "public"), name="public")


@app.on_event("startup")
async def startup_db_client():
    client = create_client()
    app.state.client = client
    app.state.store = ExerciseStore(client[DB_NAME])
    await app.state.store.check_db()
    await app.state.store.create_indexes()


@app.on_event("shutdown")
async def shutdown_db_client():
    client = getattr(app.state, "client", None)
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed.")


@app.get("/", include_in_schema=False)
async def root():
    return FileResponse(BASE_DIR / "views" / "index.html")


# ------------------------- USERS -------------------------


@app.post("/api/users", response_model=UserOut)
async def create_user(
    body: Dict[str, Any] = Depends(read_body),
    store: ExerciseStore = Depends(get_store),
):
    # A missing username fails the same way a failed insert does.
    try:
        user = UserCreate(**body)
        return await store.create_user(user.username)
    except (ValidationError, PyMongoError) as exc:
        raise PersistenceFailure("Error creating user") from exc


@app.get("/api/users", response_model=List[UserOut])
async def list_users(store: ExerciseStore = Depends(get_store)):
    try:
        return await store.list_users()
    except PyMongoError as exc:
        raise PersistenceFailure("Error listing users") from exc


# ------------------------- EXERCISES -------------------------


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _coerce_duration(value: Any) -> Optional[int]:
    duration = parse_int(value)
    if duration is None and value not in (None, ""):
        logger.warning("Non-numeric duration %r stored as null", value)
    return duration


def _coerce_bound(name: str, value: Optional[str]):
    bound = parse_date(value)
    if bound is None and value:
        logger.warning("Ignoring unparsable '%s' bound %r", name, value)
    return bound


@app.post("/api/users/{user_id}/exercises", response_model=ExerciseOut)
async def add_exercise(
    user_id: str,
    body: Dict[str, Any] = Depends(read_body),
    store: ExerciseStore = Depends(get_store),
):
    try:
        user = await load_user(store, user_id)
        exercise = ExerciseCreate(
            description=_as_text(body.get("description")),
            duration=_coerce_duration(body.get("duration")),
            date=resolve_exercise_date(body.get("date")),
        )
        saved = await store.add_exercise(user["id"], exercise)
    except PyMongoError as exc:
        raise PersistenceFailure("Error saving exercise") from exc

    return ExerciseOut(
        id=user["id"],
        username=user["username"],
        date=format_date(saved["date"]),
        duration=saved["duration"],
        description=saved["description"],
    )


@app.get("/api/users/{user_id}/logs", response_model=ExerciseLog)
async def get_exercise_log(
    user_id: str,
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    limit: Optional[str] = None,
    store: ExerciseStore = Depends(get_store),
):
    # Zero, negative, non-numeric or beyond-int64 limits mean "no limit".
    cap = parse_int(limit)
    if cap is not None and not 0 < cap <= MAX_LIMIT:
        cap = None

    try:
        user = await load_user(store, user_id)
        exercises = await store.find_exercises(
            user["id"],
            date_from=_coerce_bound("from", date_from),
            date_to=_coerce_bound("to", date_to),
            limit=cap,
        )
    except PyMongoError as exc:
        raise PersistenceFailure("Error fetching logs") from exc

    log = [
        LogEntry(
            description=e.get("description"),
            duration=e.get("duration"),
            date=format_date(e["date"]),
        )
        for e in exercises
    ]
    return ExerciseLog(username=user["username"], count=len(log), id=user["id"], log=log)


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    logger.info("App is listening on port %s", port)
    uvicorn.run(app, host=host, port=port)
