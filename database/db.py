import asyncio
import re

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

import config
from config import mask_uri, validate_mongo_uri
from logging_config import logger

# Connection options shared by every attempt
BASE_OPTIONS = {
    "connectTimeoutMS": 10000,
    "serverSelectionTimeoutMS": 10000,
}

# Development only: disables certificate and hostname checks
RELAXED_TLS_OPTIONS = {
    "tls": True,
    "tlsAllowInvalidCertificates": True,
    "tlsAllowInvalidHostnames": True,
}

TLS_ERROR_PATTERN = re.compile(r"TLS|SSL|tlsv1 alert|ERR_SSL|ssl3_read_bytes", re.IGNORECASE)

REQUESTS_COLLECTION_NAME = "requests"

# Client state, set by connect_db()
client = None
db = None
requests_collection = None


def is_tls_error(error: Exception) -> bool:
    return bool(TLS_ERROR_PATTERN.search(str(error)))


def use_database(new_client, database_name: str = None):
    """Make `new_client` the active client and bind the collections to it."""
    global client, db, requests_collection
    client = new_client
    db = new_client[database_name or config.DATABASE_NAME]
    requests_collection = db[REQUESTS_COLLECTION_NAME]
    return db


def get_requests_collection():
    if requests_collection is None:
        raise RuntimeError("Database is not initialized")
    return requests_collection


async def try_connect(uri: str, **options):
    """Create a client and confirm the server answers a ping before handing it out."""
    new_client = AsyncIOMotorClient(uri, **options)
    try:
        await new_client.admin.command("ping")
        return new_client
    except Exception:
        new_client.close()
        raise


async def connect_db(uri: str = None, relaxed_tls: bool = None):
    uri = uri or config.MONGODB_URI
    relaxed_tls = config.DEBUG_MONGO_TLS if relaxed_tls is None else relaxed_tls

    if relaxed_tls:
        logger.warning("DEBUG_MONGO_TLS=true - using relaxed TLS validation (development only).")
        new_client = await try_connect(uri, **BASE_OPTIONS, **RELAXED_TLS_OPTIONS)
        logger.warning("Connected to MongoDB (insecure debug mode).")
        return use_database(new_client)

    try:
        new_client = await try_connect(uri, **BASE_OPTIONS)
        logger.info("Connected to MongoDB (secure).")
    except Exception as e:
        if not is_tls_error(e):
            raise
        logger.warning("TLS handshake issue detected. Retrying with relaxed TLS validation (development only).")
        try:
            new_client = await try_connect(uri, **BASE_OPTIONS, **RELAXED_TLS_OPTIONS)
        except Exception as fallback_error:
            logger.error(f"TLS fallback also failed: {str(fallback_error)}")
            raise
        logger.warning("Connected to MongoDB using insecure TLS fallback. WARNING: certificate validation disabled.")

    return use_database(new_client)


async def connect_db_with_retry(attempts: int = 3, backoff_seconds: float = 2.0, **kwargs):
    for attempt in range(1, attempts + 1):
        try:
            return await connect_db(**kwargs)
        except Exception as e:
            logger.error(f"MongoDB connect attempt {attempt} failed: {str(e)}")
            if attempt == attempts:
                logger.error("All MongoDB connection attempts failed.")
                raise
            logger.info(f"Retrying in {backoff_seconds}s...")
            await asyncio.sleep(backoff_seconds)
            backoff_seconds *= 2


# Create indexes for better performance
async def create_indexes():
    collection = get_requests_collection()
    await collection.create_index([("createdAt", DESCENDING)])
    await collection.create_index([("teamId", ASCENDING)])
    await collection.create_index([("spocId", ASCENDING)])


# Initialize database
async def init_db():
    uri = validate_mongo_uri(config.MONGODB_URI)
    logger.info(f"Mongo URI: {mask_uri(uri)[:160]}")
    await connect_db_with_retry(attempts=3, backoff_seconds=2.0, uri=uri)
    await create_indexes()
    logger.info("Database initialized successfully")


async def ping_db():
    if client is None:
        raise RuntimeError("Database is not initialized")
    return await client.admin.command("ping")


async def close_db():
    global client, db, requests_collection
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed.")
    client = None
    db = None
    requests_collection = None
