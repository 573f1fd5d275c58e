# shopsearch/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from shopsearch.core.config import get_settings
import certifi
import logging

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_db() -> AsyncIOMotorDatabase | None:
    return _db


async def connect():
    """
    Create the Motor client with an explicit CA bundle.
    A failed startup ping is logged, not fatal: the client connects lazily and
    the engine degrades per request until Atlas is reachable.
    """
    global _client, _db
    settings = get_settings()

    options = {
        "uuidRepresentation": "standard",
        "serverSelectionTimeoutMS": 6000,
        "connectTimeoutMS": 6000,
    }
    if settings.MONGO_URI.startswith("mongodb+srv://"):
        # Atlas: SRV implies TLS; containers often lack a system CA bundle
        options["tlsCAFile"] = certifi.where()

    _client = AsyncIOMotorClient(settings.MONGO_URI, **options)
    _db = _client[settings.MONGO_DB]

    try:
        await _client.admin.command("ping")
        logger.info("Mongo connected (ping ok) db=%s", settings.MONGO_DB)
    except Exception as e:
        logger.warning("Mongo ping at startup failed, will connect lazily: %s", e)


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
        logger.info("Mongo disconnected")
    _client = None
    _db = None
