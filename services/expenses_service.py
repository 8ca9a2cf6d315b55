"""Service layer for handling expense-related logic."""
import logging
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection # Type hint for collection
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
from pydantic import ValidationError
from models.expense import Expense, ExpenseCreate, ExpenseUpdate, DeleteResult
from services.errors import ExpenseNotFoundError, StorageUnavailableError

logger = logging.getLogger(__name__)


def to_storage_datetime(value: Optional[datetime]) -> datetime:
    """Normalizes a timestamp to the naive-UTC, millisecond form MongoDB stores."""
    if value is None:
        value = datetime.now(timezone.utc)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _parse_object_id(expense_id: str) -> ObjectId:
    # A malformed id can never match a document
    try:
        return ObjectId(expense_id)
    except (InvalidId, TypeError):
        raise ExpenseNotFoundError(expense_id)


def _document_to_expense(doc: Dict[str, Any]) -> Expense:
    doc = dict(doc)
    if '_id' in doc:
        doc['id'] = str(doc.pop('_id'))
    return Expense(**doc)


# --- Database Interaction Functions (Depend on collection passed from route) ---

async def get_all_expenses_from_db(collection: AsyncIOMotorCollection) -> List[Expense]:
    """Fetches all expenses from the provided MongoDB collection, newest first."""
    logger.info(f"Fetching all expenses from collection '{collection.name}'...")
    expenses = []
    try:
        cursor = collection.find().sort('date', -1)
        async for doc in cursor:
            try:
                expenses.append(_document_to_expense(doc))
            except ValidationError as e:
                logger.error(f"Data validation error for document ID {doc.get('_id', 'N/A')}: {e}")
                # Skip invalid documents
                continue
        logger.info(f"Fetched {len(expenses)} expenses successfully.")
    except PyMongoError as e:
        logger.error(f"Database error fetching expenses: {e}")
        raise StorageUnavailableError(f"Database error fetching expenses: {e}")
    return expenses


async def add_expense_to_db(collection: AsyncIOMotorCollection, data: ExpenseCreate) -> Expense:
    """Inserts a new expense. The date defaults to the current server time."""
    document = {
        "description": data.description,
        "amount": float(data.amount),
        "category": data.category,
        "date": to_storage_datetime(data.date),
    }
    logger.debug(f"Inserting expense: {document}")
    try:
        result = await collection.insert_one(document)
    except PyMongoError as e:
        logger.error(f"Database error inserting expense: {e}")
        raise StorageUnavailableError(f"Database error inserting expense: {e}")
    document['_id'] = result.inserted_id
    logger.info(f"Inserted expense {result.inserted_id} ({data.category}, {data.amount}).")
    return _document_to_expense(document)


async def update_expense_in_db(collection: AsyncIOMotorCollection, expense_id: str, data: ExpenseUpdate) -> Expense:
    """Overwrites description, amount and category of an existing expense."""
    object_id = _parse_object_id(expense_id)
    changes = {
        "description": data.description,
        "amount": float(data.amount),
        "category": data.category,
    }
    try:
        doc = await collection.find_one_and_update(
            {"_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError as e:
        logger.error(f"Database error updating expense {expense_id}: {e}")
        raise StorageUnavailableError(f"Database error updating expense: {e}")
    if doc is None:
        logger.warning(f"Update requested for unknown expense {expense_id}.")
        raise ExpenseNotFoundError(expense_id)
    logger.info(f"Updated expense {expense_id}.")
    return _document_to_expense(doc)


async def delete_expense_from_db(collection: AsyncIOMotorCollection, expense_id: str) -> DeleteResult:
    """Permanently removes one expense."""
    object_id = _parse_object_id(expense_id)
    try:
        result = await collection.delete_one({"_id": object_id})
    except PyMongoError as e:
        logger.error(f"Database error deleting expense {expense_id}: {e}")
        raise StorageUnavailableError(f"Database error deleting expense: {e}")
    if result.deleted_count == 0:
        logger.warning(f"Delete requested for unknown expense {expense_id}.")
        raise ExpenseNotFoundError(expense_id)
    logger.info(f"Deleted expense {expense_id}.")
    return DeleteResult(id=expense_id, message="Expense deleted successfully")
