"""API Routes for expenses"""
from fastapi import APIRouter, HTTPException, Body, Depends, Request, Query
from typing import Any, Dict, List, Annotated, Optional
from services import expenses_service
from services.errors import ExpenseError, PersistenceFault
from models.expense import Expense
from motor.motor_asyncio import AsyncIOMotorCollection
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Dependency Function ---
def get_expenses_collection(request: Request) -> AsyncIOMotorCollection:
    """Dependency to get the MongoDB expenses collection from the application state."""
    collection = getattr(request.app.state, "expenses_collection", None)
    if collection is None:
        logger.error("Expenses collection not found in application state. Check MongoDB connection.")
        raise HTTPException(status_code=503, detail="Database service not available.")
    return collection

# Type hint for the dependency
ExpensesCollectionDep = Annotated[AsyncIOMotorCollection, Depends(get_expenses_collection)]


def _to_http_error(exc: ExpenseError) -> HTTPException:
    """Maps a service error kind to its HTTP status, keeping the message for diagnostics."""
    if isinstance(exc, PersistenceFault):
        logger.error(f"{exc.kind}: {exc}")
    else:
        logger.warning(f"{exc.kind}: {exc}")
    return HTTPException(status_code=exc.status_code, detail={"error": exc.kind, "message": str(exc)})

# --- API Routes ---

@router.get("/expenses", response_model=List[Expense], summary="List Expenses", description="Retrieves expense records, optionally filtered by category and an inclusive date range, sorted by date descending.")
async def get_expenses(
    collection: ExpensesCollectionDep,
    category: Optional[str] = Query(None, description="Exact category to match."),
    start: Optional[str] = Query(None, description="Earliest date to include (ISO 8601)."),
    end: Optional[str] = Query(None, description="Latest date to include (ISO 8601)."),
) -> List[Expense]:
    logger.info(f"GET /expenses endpoint called. category={category!r} start={start!r} end={end!r}")
    try:
        return await expenses_service.list_expenses(collection, category=category, start=start, end=end)
    except ExpenseError as e:
        raise _to_http_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error fetching expenses: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while fetching expenses.")

@router.post("/expenses", response_model=Expense, status_code=201, summary="Create Expense")
async def create_expense(collection: ExpensesCollectionDep, payload: Annotated[Dict[str, Any], Body(...)]) -> Expense:
    logger.info("POST /expenses endpoint called.")
    try:
        return await expenses_service.create_expense(collection, payload)
    except ExpenseError as e:
        raise _to_http_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error creating expense: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while creating the expense.")

@router.api_route("/expenses/{expense_id}", methods=["PATCH", "PUT"], summary="Update Expense", description="Replaces title, amount, category and date of an existing expense.")
async def update_expense(expense_id: str, collection: ExpensesCollectionDep, payload: Annotated[Dict[str, Any], Body(...)]):
    logger.info(f"Update /expenses/{expense_id} endpoint called.")
    try:
        await expenses_service.update_expense(collection, expense_id, payload)
    except ExpenseError as e:
        raise _to_http_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error updating expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while updating the expense.")
    return {"message": "Expense updated successfully"}

@router.delete("/expenses/{expense_id}", summary="Delete Expense")
async def delete_expense(expense_id: str, collection: ExpensesCollectionDep):
    logger.info(f"DELETE /expenses/{expense_id} endpoint called.")
    try:
        await expenses_service.delete_expense(collection, expense_id)
    except ExpenseError as e:
        raise _to_http_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error deleting expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while deleting the expense.")
    return {"message": "Expense deleted successfully"}

@router.get("/health", summary="Health Check", description="Pings the database backing the expenses collection.")
async def health(collection: ExpensesCollectionDep):
    try:
        await expenses_service.ping(collection)
    except PersistenceFault as e:
        raise HTTPException(status_code=503, detail={"error": e.kind, "message": str(e)})
    return {"status": "ok"}
