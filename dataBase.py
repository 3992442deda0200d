import logging

import motor.motor_asyncio
from pymongo import ASCENDING

from config import MONGO_URL, DB_NAME

logger = logging.getLogger(__name__)

client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]


def get_db():
    return db


async def ensure_indexes(database) -> None:
    """Create the secondary indexes used by the filters and lookups."""
    await database.users.create_index("email", unique=True)
    await database.users.create_index("location")
    await database.books.create_index([("location", ASCENDING), ("status", ASCENDING)])
    await database.books.create_index([("genre", ASCENDING), ("status", ASCENDING)])
    await database.books.create_index("owner")
    await database.transactions.create_index([("requester", ASCENDING), ("status", ASCENDING)])
    await database.transactions.create_index([("owner", ASCENDING), ("status", ASCENDING)])
    await database.transactions.create_index("book")
    logger.info("Database indexes ensured on %s", database.name)
