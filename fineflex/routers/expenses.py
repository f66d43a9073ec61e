from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from fineflex.core.security import get_current_user_id
from fineflex.db.ledger import LedgerStore
from fineflex.models.expense import ExpenseCreate, ExpensePublic
from fineflex.routers.deps import get_ledger

router = APIRouter()


@router.get("", response_model=List[ExpensePublic])
def list_expenses(user_id: int = Depends(get_current_user_id), ledger: LedgerStore = Depends(get_ledger)):
    return ledger.list_expenses(user_id)


@router.post("", response_model=ExpensePublic, status_code=status.HTTP_201_CREATED)
def create_expense(
    expense: ExpenseCreate,
    user_id: int = Depends(get_current_user_id),
    ledger: LedgerStore = Depends(get_ledger),
):
    created = ledger.create_expense(
        user_id=user_id,
        name=expense.name,
        amount=expense.amount,
        category=expense.category,
        date=expense.date,
    )
    if not created:
        raise HTTPException(status_code=500, detail="Failed to save expense")
    return created


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: int,
    user_id: int = Depends(get_current_user_id),
    ledger: LedgerStore = Depends(get_ledger),
) -> Dict:
    if not ledger.delete_expense(user_id, expense_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"message": "Expense deleted successfully"}
