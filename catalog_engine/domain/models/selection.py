from pydantic import BaseModel, Field
from typing import Any, List

from catalog_engine.domain.models.item import Item

class BudgetSelection(BaseModel):
    """Subset chosen by the budget optimizer, in catalog order."""
    items: List[Item]
    total_value: float
    total_cost: int = Field(ge=0)
    model_config = {"frozen": True}

class FractionalPick(BaseModel):
    payload: Any
    fraction: float = Field(gt=0, le=1)
    cost: float
    value: float
    model_config = {"frozen": True}

class FractionalSelection(BaseModel):
    picks: List[FractionalPick]
    total_value: float
    total_cost: float
    model_config = {"frozen": True}

class RentalOption(BaseModel):
    """One way to rent an item: `duration` days for `price`, worth `value`."""
    duration: int = Field(ge=1)
    price: float = Field(ge=0)
    value: float
    discount: float = 0.0
    model_config = {"frozen": True}

class RentalPlan(BaseModel):
    options: List[RentalOption]
    total_value: float
    total_days: int
    total_price: float
    model_config = {"frozen": True}

class Discount(BaseModel):
    """`percent` off the whole rental once it lasts at least `min_days`."""
    min_days: int = Field(ge=1)
    percent: float = Field(ge=0, le=100)
    model_config = {"frozen": True}
