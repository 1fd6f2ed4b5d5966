from typing import Any, Dict

from fastapi import Request

from database import ExerciseStore
from errors import UserNotFound


def get_store(request: Request) -> ExerciseStore:
    """The store attached to the app at startup (overridden in tests)."""
    return request.app.state.store


async def read_body(request: Request) -> Dict[str, Any]:
    """Request body as a flat dict, whether it came as JSON or a form.

    Anything else (no body, bad JSON, a JSON array) reads as empty.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return dict(form)

    return {}


async def load_user(store: ExerciseStore, user_id: str) -> Dict[str, str]:
    user = await store.find_user(user_id)
    if not user:
        raise UserNotFound(user_id)
    return user
