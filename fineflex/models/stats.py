from pydantic import BaseModel
from typing import Dict


class StatsResponse(BaseModel):
    monthly_income: float
    savings_goal: float
    total_expenses: float
    saved_amount: float
    goal_percentage: float
    category_totals: Dict[str, float]
