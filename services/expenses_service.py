"""Service layer for handling expense-related logic."""
import logging
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection # Type hint for collection
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from models.expense import Expense
from services.errors import InvalidDate, InvalidId, NotFound, PersistenceFault
from services.validation import validate_expense
from utils.dates import parse_date

logger = logging.getLogger(__name__)

SORT_FIELD = "date"
SORT_ORDER = -1


def parse_expense_id(expense_id: str) -> ObjectId:
    """Converts a path id into an ObjectId, raising InvalidId if it is malformed."""
    if not isinstance(expense_id, str) or not ObjectId.is_valid(expense_id):
        raise InvalidId(f"Invalid expense id: {expense_id!r}")
    return ObjectId(expense_id)


def _parse_bound(value: Any, name: str):
    try:
        return parse_date(value)
    except ValueError as e:
        raise InvalidDate(f"Invalid '{name}' date: {value!r}") from e


def build_expense_filter(
    category: Optional[str] = None,
    start: Optional[Any] = None,
    end: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Builds the MongoDB query for the list endpoint.
    Empty values are ignored; date bounds are inclusive.
    """
    query: Dict[str, Any] = {}
    if category:
        query["category"] = category
    date_range: Dict[str, Any] = {}
    if start not in (None, ""):
        date_range["$gte"] = _parse_bound(start, "start")
    if end not in (None, ""):
        date_range["$lte"] = _parse_bound(end, "end")
    if date_range:
        query["date"] = date_range
    return query


def _document_to_expense(doc: Mapping[str, Any]) -> Expense:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return Expense(**doc)


# --- Database Interaction Functions (Depend on collection passed from route) ---

async def list_expenses(
    collection: AsyncIOMotorCollection,
    category: Optional[str] = None,
    start: Optional[Any] = None,
    end: Optional[Any] = None,
) -> List[Expense]:
    """Fetches the expenses matching the filters, newest date first."""
    query = build_expense_filter(category=category, start=start, end=end)
    logger.info(f"Fetching expenses from collection '{collection.name}' with filter {query}...")
    expenses = []
    try:
        cursor = collection.find(query).sort(SORT_FIELD, SORT_ORDER)
        async for doc in cursor:
            try:
                expenses.append(_document_to_expense(doc))
            except ValidationError as e:
                logger.error(f"Data validation error for document ID {doc.get('_id', 'N/A')}: {e}")
                # Skip invalid documents
                continue
    except PyMongoError as e:
        logger.error(f"Database error fetching expenses: {e}")
        raise PersistenceFault(f"Database error fetching expenses: {e}") from e
    logger.info(f"Fetched {len(expenses)} expenses successfully.")
    return expenses


async def create_expense(collection: AsyncIOMotorCollection, payload: Mapping[str, Any]) -> Expense:
    """Validates the payload and inserts it as a new expense."""
    fields = validate_expense(payload)
    document = fields.model_dump()
    try:
        result = await collection.insert_one(document)
    except PyMongoError as e:
        logger.error(f"Database error inserting expense: {e}")
        raise PersistenceFault(f"Database error inserting expense: {e}") from e
    logger.info(f"Inserted expense {result.inserted_id} ('{fields.title}').")
    return Expense(id=str(result.inserted_id), **fields.model_dump())


async def update_expense(collection: AsyncIOMotorCollection, expense_id: str, payload: Mapping[str, Any]) -> None:
    """
    Replaces the four mutable fields of an existing expense.
    Raises NotFound when no document has the given id; never upserts.
    """
    fields = validate_expense(payload)
    object_id = parse_expense_id(expense_id)
    try:
        result = await collection.update_one({"_id": object_id}, {"$set": fields.model_dump()})
    except PyMongoError as e:
        logger.error(f"Database error updating expense {expense_id}: {e}")
        raise PersistenceFault(f"Database error updating expense: {e}") from e
    if result.matched_count == 0:
        raise NotFound(f"Expense {expense_id} not found")
    logger.info(f"Updated expense {expense_id} (modified: {result.modified_count}).")


async def delete_expense(collection: AsyncIOMotorCollection, expense_id: str) -> None:
    """Deletes a single expense, raising NotFound when nothing matched."""
    object_id = parse_expense_id(expense_id)
    try:
        result = await collection.delete_one({"_id": object_id})
    except PyMongoError as e:
        logger.error(f"Database error deleting expense {expense_id}: {e}")
        raise PersistenceFault(f"Database error deleting expense: {e}") from e
    if result.deleted_count == 0:
        raise NotFound(f"Expense {expense_id} not found")
    logger.info(f"Deleted expense {expense_id}.")


async def ping(collection: AsyncIOMotorCollection) -> None:
    """Round-trips a ping command to the collection's database."""
    try:
        await collection.database.command("ping")
    except PyMongoError as e:
        logger.error(f"MongoDB ping failed: {e}")
        raise PersistenceFault(f"MongoDB ping failed: {e}") from e
