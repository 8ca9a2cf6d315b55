"""API Routes for expenses and the monthly budget"""
from fastapi import APIRouter, HTTPException, Depends, Request, Query
from fastapi.responses import Response
from typing import List, Annotated, Optional
from services import expenses_service, budget_service
from services.errors import ExpenseNotFoundError, StorageUnavailableError
from models.expense import Expense, ExpenseCreate, ExpenseUpdate, DeleteResult
from models.budget import Budget, BudgetUpdate
from models.summary import Summary
from utils.summary import summarize
from utils.export import expenses_to_csv, export_filename
from motor.motor_asyncio import AsyncIOMotorCollection
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Dependency Functions ---
def _collection_from_state(request: Request, name: str) -> AsyncIOMotorCollection:
    collection = getattr(request.state, name, None)
    if collection is None:
        logger.error(f"Collection '{name}' not found in application state. Check MongoDB connection.")
        raise HTTPException(status_code=503, detail="Database service not available.")
    return collection

def get_expenses_collection(request: Request) -> AsyncIOMotorCollection:
    """Dependency to get the MongoDB expenses collection from the request state."""
    return _collection_from_state(request, "expenses_collection")

def get_budget_collection(request: Request) -> AsyncIOMotorCollection:
    """Dependency to get the MongoDB budget collection from the request state."""
    return _collection_from_state(request, "budget_collection")

# Type hints for the dependencies
ExpensesCollectionDep = Annotated[AsyncIOMotorCollection, Depends(get_expenses_collection)]
BudgetCollectionDep = Annotated[AsyncIOMotorCollection, Depends(get_budget_collection)]

# --- Expense Routes ---

@router.get("/expenses", response_model=List[Expense], summary="Get All Expenses", description="Retrieves all expense records, newest first.")
async def get_expenses(collection: ExpensesCollectionDep) -> List[Expense]:
    logger.info("GET /expenses endpoint called.")
    try:
        return await expenses_service.get_all_expenses_from_db(collection)
    except StorageUnavailableError as ce:
        logger.error(f"Connection error fetching expenses: {ce}")
        raise HTTPException(status_code=503, detail=f"Database connection error: {ce}")
    except Exception as e:
        logger.exception(f"Unexpected error fetching expenses: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while fetching expenses.")

@router.get("/expenses/export", summary="Export Expenses", description="Downloads all expenses as a CSV file.")
async def export_expenses(collection: ExpensesCollectionDep) -> Response:
    logger.info("GET /expenses/export endpoint called.")
    try:
        expenses = await expenses_service.get_all_expenses_from_db(collection)
    except StorageUnavailableError as ce:
        logger.error(f"Connection error exporting expenses: {ce}")
        raise HTTPException(status_code=503, detail=f"Database connection error: {ce}")
    except Exception as e:
        logger.exception(f"Unexpected error exporting expenses: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while exporting expenses.")
    return Response(
        content=expenses_to_csv(expenses),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )

@router.post("/expenses", response_model=Expense, status_code=201, summary="Add Expense", description="Stores a new expense. The date defaults to now.")
async def create_expense(collection: ExpensesCollectionDep, expense: ExpenseCreate) -> Expense:
    logger.info(f"POST /expenses endpoint called: {expense.description[:50]} ({expense.category}, {expense.amount})")
    try:
        return await expenses_service.add_expense_to_db(collection, expense)
    except StorageUnavailableError as ce:
        logger.error(f"Connection error adding expense: {ce}")
        raise HTTPException(status_code=503, detail=str(ce))
    except Exception as e:
        logger.exception(f"Unexpected error adding expense: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while adding the expense.")

@router.put("/expenses/{expense_id}", response_model=Expense, summary="Update Expense", description="Overwrites description, amount and category of an expense.")
async def update_expense(collection: ExpensesCollectionDep, expense_id: str, expense: ExpenseUpdate) -> Expense:
    logger.info(f"PUT /expenses/{expense_id} endpoint called.")
    try:
        return await expenses_service.update_expense_in_db(collection, expense_id, expense)
    except ExpenseNotFoundError:
        raise HTTPException(status_code=404, detail="Expense not found")
    except StorageUnavailableError as ce:
        logger.error(f"Connection error updating expense {expense_id}: {ce}")
        raise HTTPException(status_code=503, detail=str(ce))
    except Exception as e:
        logger.exception(f"Unexpected error updating expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while updating the expense.")

@router.delete("/expenses/{expense_id}", response_model=DeleteResult, summary="Delete Expense", description="Permanently removes an expense.")
async def delete_expense(collection: ExpensesCollectionDep, expense_id: str) -> DeleteResult:
    logger.info(f"DELETE /expenses/{expense_id} endpoint called.")
    try:
        return await expenses_service.delete_expense_from_db(collection, expense_id)
    except ExpenseNotFoundError:
        raise HTTPException(status_code=404, detail="Expense not found")
    except StorageUnavailableError as ce:
        logger.error(f"Connection error deleting expense {expense_id}: {ce}")
        raise HTTPException(status_code=503, detail=str(ce))
    except Exception as e:
        logger.exception(f"Unexpected error deleting expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while deleting the expense.")

# --- Budget Routes ---

@router.get("/budget", response_model=Budget, summary="Get Budget", description="Returns the monthly budget, creating it with amount 0 if absent.")
async def read_budget(collection: BudgetCollectionDep) -> Budget:
    logger.info("GET /budget endpoint called.")
    try:
        return await budget_service.get_budget(collection)
    except StorageUnavailableError as ce:
        logger.error(f"Connection error reading budget: {ce}")
        raise HTTPException(status_code=503, detail=str(ce))
    except Exception as e:
        logger.exception(f"Unexpected error reading budget: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while reading the budget.")

@router.post("/budget", response_model=Budget, summary="Set Budget", description="Creates or overwrites the monthly budget amount.")
async def write_budget(collection: BudgetCollectionDep, budget: BudgetUpdate) -> Budget:
    logger.info(f"POST /budget endpoint called with amount {budget.amount}.")
    try:
        return await budget_service.set_budget(collection, budget.amount)
    except StorageUnavailableError as ce:
        logger.error(f"Connection error setting budget: {ce}")
        raise HTTPException(status_code=503, detail=str(ce))
    except Exception as e:
        logger.exception(f"Unexpected error setting budget: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while setting the budget.")

# --- Summary Route ---

@router.get("/summary", response_model=Summary, summary="Get Summary", description="Totals, category breakdown and budget usage for one month.")
async def get_summary(
    expenses_collection: ExpensesCollectionDep,
    budget_collection: BudgetCollectionDep,
    year: Optional[int] = Query(None, description="Calendar year, defaults to the current year."),
    month: Optional[int] = Query(None, ge=1, le=12, description="Calendar month 1-12, defaults to the current month."),
) -> Summary:
    logger.info(f"GET /summary endpoint called for year={year} month={month}.")
    try:
        expenses = await expenses_service.get_all_expenses_from_db(expenses_collection)
        budget = await budget_service.get_budget(budget_collection)
    except StorageUnavailableError as ce:
        logger.error(f"Connection error building summary: {ce}")
        raise HTTPException(status_code=503, detail=str(ce))
    except Exception as e:
        logger.exception(f"Unexpected error building summary: {e}")
        raise HTTPException(status_code=500, detail="An unexpected server error occurred while building the summary.")
    return summarize(expenses, budget.amount, year=year, month=month)
