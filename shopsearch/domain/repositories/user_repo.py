# shopsearch/domain/repositories/user_repo.py

from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging
import time

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from shopsearch.domain.errors import UpstreamFailure
from shopsearch.domain.models.user import HistoryEntry, UserHistory, UserPreferences

logger = logging.getLogger(__name__)

_EVENT_KINDS = {"view": "browsing", "purchase": "purchases"}


class UserRepo:
    """
    User collaborator. History is derived from the 'events' collection
    (view -> browsing, purchase -> purchases, most recent first); preferences
    come from the 'users' collection.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        events_collection: str = "events",
        users_collection: str = "users",
        max_events: int = 200,
    ):
        self.events = db[events_collection]
        self.users = db[users_collection]
        self.max_events = max_events

    async def fetch_user_history(self, user_id: str) -> Optional[UserHistory]:
        """None when the user has neither a profile nor any tracked event."""
        pipeline = [
            {"$match": {"user_id": user_id, "event_type": {"$in": list(_EVENT_KINDS)}}},
            {"$addFields": {"ts": {"$toDate": "$timestamp"}}},
            {"$sort": {"ts": -1}},
            {"$limit": self.max_events},
            {"$project": {"_id": 0, "event_type": 1, "product_id": 1, "ts": 1}},
        ]
        t0 = time.perf_counter()
        try:
            docs = await self.events.aggregate(pipeline).to_list(length=self.max_events)
            exists = bool(docs) or await self.users.count_documents({"user_id": user_id}, limit=1) > 0
        except PyMongoError as e:
            raise UpstreamFailure(f"fetch_user_history failed: {e}") from e
        logger.info("user_history db_ok user_id=%s events=%s db_time=%.3fs", user_id, len(docs), time.perf_counter() - t0)

        if not exists:
            return None

        buckets: Dict[str, List[HistoryEntry]] = {"browsing": [], "purchases": []}
        for d in docs:
            if not d.get("product_id"):
                continue
            buckets[_EVENT_KINDS[d["event_type"]]].append(
                HistoryEntry(product_id=str(d["product_id"]), timestamp=d.get("ts"))
            )
        return UserHistory(**buckets)

    async def fetch_user_preferences(self, user_id: str) -> Optional[UserPreferences]:
        try:
            doc = await self.users.find_one(
                {"user_id": user_id},
                {"_id": 0, "preferences": 1, "recommendation_weights": 1},
            )
        except PyMongoError as e:
            raise UpstreamFailure(f"fetch_user_preferences failed: {e}") from e
        if not doc:
            return None

        raw: Dict[str, Any] = dict(doc.get("preferences") or {})
        if doc.get("recommendation_weights"):
            raw["recommendation_weights"] = doc["recommendation_weights"]
        try:
            return UserPreferences.model_validate(raw)
        except ValidationError as e:
            logger.warning("Invalid preferences user_id=%s, using defaults: %s", user_id, e)
            return UserPreferences()
