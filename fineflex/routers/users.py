from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from fineflex.core.security import get_current_user_id
from fineflex.db.ledger import LedgerStore
from fineflex.models.user import UserPublic, UserSettingsUpdate
from fineflex.routers.deps import get_ledger

router = APIRouter()


@router.get("", response_model=UserPublic)
def get_current_user(user_id: int = Depends(get_current_user_id), ledger: LedgerStore = Depends(get_ledger)):
    """Get current user profile"""
    user = ledger.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserPublic.from_record(user)


@router.put("/settings")
def update_settings(
    update: UserSettingsUpdate,
    user_id: int = Depends(get_current_user_id),
    ledger: LedgerStore = Depends(get_ledger),
) -> Dict:
    # null clears the API key but never the numeric columns
    fields = {
        key: value
        for key, value in update.model_dump(exclude_unset=True).items()
        if value is not None or key == "ai_api_key"
    }
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    if not ledger.get_user_by_id(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if not ledger.update_user_settings(user_id, fields):
        raise HTTPException(status_code=500, detail="Failed to update settings")
    return {"message": "Settings updated successfully"}
