from enum import Enum
from typing import Annotated, Any, Callable, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from catalog_engine.core.config import get_settings
from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.models.booking import BookingInterval, ScheduleResult
from catalog_engine.domain.models.item import Item, RankedItem
from catalog_engine.domain.models.selection import BudgetSelection
from catalog_engine.domain.services.constants import (
    KIND_BUDGET,
    KIND_NEAREST,
    KIND_PREFIX,
    KIND_RECOMMEND,
    KIND_SCHEDULE,
    KIND_SORT,
    KIND_TOP_K,
)


class Criteria(str, Enum):
    PRICE = "price"
    RATING = "rating"
    POPULAR = "popular"
    BEST_VALUE = "best_value"

    @classmethod
    def parse(cls, text: str) -> "Criteria":
        """
        Map what users type in the chat to a criteria. Unknown words are an
        error, there is no fallback ranking.
        """
        key = (text or "").strip().lower()
        if not key:
            raise InvalidInputError("criteria is required")
        try:
            return _CRITERIA_ALIASES[key]
        except KeyError:
            raise InvalidInputError(f"unknown ranking criteria: {text!r}") from None


_CRITERIA_ALIASES = {
    "price": Criteria.PRICE, "cheap": Criteria.PRICE, "low": Criteria.PRICE,
    "rating": Criteria.RATING, "best": Criteria.RATING, "top": Criteria.RATING,
    "popular": Criteria.POPULAR, "popularity": Criteria.POPULAR,
    "best_value": Criteria.BEST_VALUE, "value": Criteria.BEST_VALUE,
}


class SortField(str, Enum):
    PRICE = "price"
    RATING = "rating"
    RENTAL_COUNT = "rental_count"
    NAME = "name"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _default_prefix_limit() -> int:
    return get_settings().default_prefix_limit


def _default_result_limit() -> int:
    return get_settings().default_result_limit


class PrefixQuery(BaseModel):
    kind: Literal["prefix"] = KIND_PREFIX
    prefix: str
    limit: int = Field(default_factory=_default_prefix_limit, ge=0)
    model_config = {"frozen": True}

    @field_validator("prefix")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prefix must not be blank")
        return v


class SortQuery(BaseModel):
    kind: Literal["sort"] = KIND_SORT
    field: SortField
    order: SortOrder = SortOrder.ASC
    stable: bool = True  # False trades tie order for the in-place quick sort
    model_config = {"frozen": True}


class RecommendQuery(BaseModel):
    kind: Literal["recommend"] = KIND_RECOMMEND
    criteria: Criteria
    limit: int = Field(default_factory=_default_result_limit, ge=0)
    model_config = {"frozen": True}

    @field_validator("criteria", mode="before")
    @classmethod
    def _aliases(cls, v: Any) -> Any:
        return Criteria.parse(v) if isinstance(v, str) and not isinstance(v, Criteria) else v


class TopKQuery(BaseModel):
    kind: Literal["top_k"] = KIND_TOP_K
    k: int = Field(ge=0)
    score_fn: Callable[[Item], float]
    model_config = {"frozen": True}


class NearestQuery(BaseModel):
    kind: Literal["nearest"] = KIND_NEAREST
    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)
    k: int = Field(default_factory=_default_result_limit, ge=0)
    model_config = {"frozen": True}


class BudgetQuery(BaseModel):
    kind: Literal["budget"] = KIND_BUDGET
    budget: float = Field(ge=0, allow_inf_nan=False)
    value_fn: Optional[Callable[[Item], float]] = None
    cost_fn: Optional[Callable[[Item], float]] = None
    model_config = {"frozen": True}


class ScheduleQuery(BaseModel):
    kind: Literal["schedule"] = KIND_SCHEDULE
    item_id: str = Field(min_length=1)
    intervals: List[BookingInterval] = []
    weighted: bool = True
    model_config = {"frozen": True}


Query = Annotated[
    Union[PrefixQuery, SortQuery, RecommendQuery, TopKQuery, NearestQuery, BudgetQuery, ScheduleQuery],
    Field(discriminator="kind"),
]

_QUERY_ADAPTER: TypeAdapter = TypeAdapter(Query)


def parse_query(data: Any) -> BaseModel:
    """Validate a query descriptor (model or mapping with a `kind`) into its typed variant."""
    if isinstance(data, BaseModel):
        return data
    try:
        return _QUERY_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise InvalidInputError(f"invalid query: {e}") from e


class QueryResult(BaseModel):
    kind: str
    snapshot_version: int
    items: List[RankedItem] = []
    selection: Optional[BudgetSelection] = None
    schedule: Optional[ScheduleResult] = None
    model_config = {"frozen": True}

    @property
    def count(self) -> int:
        if self.selection is not None:
            return len(self.selection.items)
        if self.schedule is not None:
            return len(self.schedule.schedule)
        return len(self.items)
