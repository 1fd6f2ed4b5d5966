import datetime as dt
import logging
import os
from typing import Any, Dict, List, Optional

from bson import ObjectId
from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from models import ExerciseCreate, to_datetime


load_dotenv()

logger = logging.getLogger(__name__)

# Defaults work for local MongoDB.
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "exercise_tracker")


def create_client(uri: str = MONGO_URI) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(uri)


def build_log_filter(
    user_id: ObjectId,
    date_from: Optional[dt.date] = None,
    date_to: Optional[dt.date] = None,
) -> Dict[str, Any]:
    """Query for one user's exercises, optionally bounded by date.

    Both bounds are inclusive and independent of each other.
    """
    query: Dict[str, Any] = {"user_id": user_id}
    if date_from is not None or date_to is not None:
        query["date"] = {}
        if date_from is not None:
            query["date"]["$gte"] = to_datetime(date_from)
        if date_to is not None:
            query["date"]["$lte"] = to_datetime(date_to)
    return query


class ExerciseStore:
    """Users and exercises collections behind one Motor database handle."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def check_db(self) -> None:
        """Fail-fast check so you instantly know Mongo is reachable."""
        await self.db.client.admin.command("ping")
        logger.info("MongoDB connection successful (%s)", self.db.name)

    async def create_indexes(self) -> None:
        await self.db.exercises.create_index([("user_id", 1), ("date", 1)])
        logger.info("Indexes created.")

    # ------------------------- USERS -------------------------

    async def create_user(self, username: str) -> Dict[str, str]:
        result = await self.db.users.insert_one({"username": username})
        return {"id": str(result.inserted_id), "username": username}

    async def list_users(self) -> List[Dict[str, str]]:
        cursor = self.db.users.find({}, {"username": 1})
        users = await cursor.to_list(length=None)
        return [{"id": str(u["_id"]), "username": u.get("username")} for u in users]

    async def find_user(self, user_id: str) -> Optional[Dict[str, str]]:
        # Ids that can't be ObjectIds can't match anything either.
        if not ObjectId.is_valid(user_id):
            return None
        user = await self.db.users.find_one({"_id": ObjectId(user_id)})
        if not user:
            return None
        return {"id": str(user["_id"]), "username": user.get("username")}

    # ------------------------- EXERCISES -------------------------

    async def add_exercise(self, user_id: str, exercise: ExerciseCreate) -> Dict[str, Any]:
        doc = exercise.dict()
        doc["user_id"] = ObjectId(user_id)  # reference to users collection
        doc["date"] = to_datetime(exercise.date)
        result = await self.db.exercises.insert_one(doc)
        doc.pop("_id", None)
        doc["id"] = str(result.inserted_id)
        doc["user_id"] = user_id
        return doc

    async def find_exercises(
        self,
        user_id: str,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = build_log_filter(ObjectId(user_id), date_from, date_to)
        cursor = self.db.exercises.find(
            query, {"_id": 0, "description": 1, "duration": 1, "date": 1}
        )
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)
