from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from typing import Optional

class Item(BaseModel):
    """
    One rentable piece of equipment as captured in a catalog snapshot.
    Coordinates are either both present or both absent.
    """
    item_id: str = Field(validation_alias=AliasChoices("item_id", "id"))
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0, allow_inf_nan=False, validation_alias=AliasChoices("price", "price_per_day"))
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    rental_count: Optional[int] = Field(default=None, ge=0)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90, allow_inf_nan=False)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180, allow_inf_nan=False)
    available: bool = True

    model_config = {"frozen": True, "populate_by_name": True}  # immuable = safe

    @field_validator("item_id", mode="before")
    @classmethod
    def _stringify_id(cls, v):
        # bot payloads carry numeric ids
        return str(v) if isinstance(v, int) else v

    @model_validator(mode="after")
    def _coordinates_together(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

class RankedItem(BaseModel):
    """An item paired with the derived number of one query (distance, score, value)."""
    item: Item
    score: Optional[float] = None
    model_config = {"frozen": True} # immuable = safe
