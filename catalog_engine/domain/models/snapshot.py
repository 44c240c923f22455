from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union
from pydantic import BaseModel, Field, PrivateAttr, ValidationError, model_validator

from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.models.item import Item

class CatalogSnapshot(BaseModel):
    """
    Ordered, immutable set of items captured at one point in time.
    Replaced wholesale on refresh, never patched.
    """
    version: int = Field(ge=0)
    items: Tuple[Item, ...] = ()
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}

    _by_id: Dict[str, Item] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _unique_ids(self):
        seen = set()
        for item in self.items:
            if item.item_id in seen:
                raise ValueError(f"duplicate item_id in snapshot: {item.item_id}")
            seen.add(item.item_id)
        return self

    def model_post_init(self, __context: Any) -> None:
        self._by_id = {item.item_id: item for item in self.items}

    @classmethod
    def from_records(
        cls,
        records: Iterable[Union[Item, Mapping[str, Any]]],
        *,
        version: int = 0,
        captured_at: Optional[datetime] = None,
    ) -> "CatalogSnapshot":
        """
        Build a snapshot from loader output (Item models or plain mappings).
        Any malformed record fails the whole snapshot with InvalidInputError.
        """
        try:
            items = tuple(r if isinstance(r, Item) else Item.model_validate(r) for r in records)
            data: Dict[str, Any] = {"version": version, "items": items}
            if captured_at is not None:
                data["captured_at"] = captured_at
            return cls(**data)
        except ValidationError as e:
            raise InvalidInputError(f"invalid catalog snapshot: {e}") from e

    def get(self, item_id: str) -> Optional[Item]:
        return self._by_id.get(str(item_id))
