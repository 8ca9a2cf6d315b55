"""Service layer for the singleton monthly budget."""
import logging
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError
from models.budget import Budget, BUDGET_IDENTIFIER
from services.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


async def ensure_budget_index(collection: AsyncIOMotorCollection) -> None:
    """Creates the unique index that keeps at most one budget per identifier."""
    await collection.create_index("identifier", unique=True)


async def get_budget(collection: AsyncIOMotorCollection) -> Budget:
    """
    Returns the budget, creating it with amount 0 on first read.
    Absence is never reported to the caller.
    """
    try:
        doc = await collection.find_one({"identifier": BUDGET_IDENTIFIER})
        if doc is None:
            logger.info("No budget stored yet, creating default budget.")
            try:
                await collection.insert_one({"identifier": BUDGET_IDENTIFIER, "amount": 0.0})
            except DuplicateKeyError:
                # Another request created it first
                logger.debug("Default budget already created concurrently.")
            doc = await collection.find_one({"identifier": BUDGET_IDENTIFIER})
    except PyMongoError as e:
        logger.error(f"Database error reading budget: {e}")
        raise StorageUnavailableError(f"Database error reading budget: {e}")
    return Budget(identifier=doc["identifier"], amount=doc.get("amount", 0))


async def set_budget(collection: AsyncIOMotorCollection, amount: float) -> Budget:
    """Upserts the budget amount. Concurrent writers are last-write-wins."""
    logger.info(f"Setting budget to {amount}.")
    try:
        doc = await collection.find_one_and_update(
            {"identifier": BUDGET_IDENTIFIER},
            {"$set": {"amount": float(amount)}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError as e:
        logger.error(f"Database error setting budget: {e}")
        raise StorageUnavailableError(f"Database error setting budget: {e}")
    return Budget(identifier=doc["identifier"], amount=doc["amount"])
