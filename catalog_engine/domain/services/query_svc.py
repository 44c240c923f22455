import json
import logging
import time
from typing import Any, Callable, Dict

from pydantic import BaseModel

from catalog_engine.domain.models.query import (
    BudgetQuery,
    NearestQuery,
    PrefixQuery,
    QueryResult,
    RecommendQuery,
    ScheduleQuery,
    SortQuery,
    TopKQuery,
    parse_query,
)
from catalog_engine.domain.models.item import RankedItem
from catalog_engine.domain.repositories.snapshot_repo import CatalogState, SnapshotHandle
from catalog_engine.domain.services.geo import nearest
from catalog_engine.domain.services.knapsack import optimize_budget
from catalog_engine.domain.services.ranking import recommend, sort_items, top_scored
from catalog_engine.domain.services.scheduling import optimize_rental_schedule

logger = logging.getLogger(__name__)


def _json_preview(obj: Any, limit: int = 1000) -> str:
    """Minify and truncate JSON for debug logs."""
    try:
        s = json.dumps(obj, separators=(",", ":"), ensure_ascii=False, default=str)
        return s if len(s) <= limit else s[:limit] + "…[truncated]"
    except Exception:
        return "<unserializable>"


class QueryEngine:
    """
    Runs typed query descriptors against whatever snapshot the handle holds
    when the query starts. One state read per query, so a concurrent
    refresh never shows up halfway through.
    """

    def __init__(self, handle: SnapshotHandle):
        self.handle = handle
        self._routes: Dict[type, Callable[[CatalogState, Any], QueryResult]] = {
            PrefixQuery: self._prefix,
            SortQuery: self._sort,
            RecommendQuery: self._recommend,
            TopKQuery: self._top_k,
            NearestQuery: self._nearest,
            BudgetQuery: self._budget,
            ScheduleQuery: self._schedule,
        }

    def run(self, query: Any) -> QueryResult:
        query = parse_query(query)
        route = self._routes.get(type(query))
        if route is None:
            # parse_query only yields known variants; a foreign model lands here
            raise TypeError(f"no route for query type {type(query).__name__}")

        start_time = time.perf_counter()
        state = self.handle.current()
        logger.debug("query kind=%s descriptor=%s", query.kind, _json_preview(_describe(query)))

        result = route(state, query)

        logger.info(
            "query done kind=%s version=%s count=%s elapsed_time=%.4fs",
            query.kind, state.snapshot.version, result.count, time.perf_counter() - start_time,
        )
        return result

    # --- routes ----------------------------------------------------------------

    def _prefix(self, state: CatalogState, query: PrefixQuery) -> QueryResult:
        index = self.handle.index_for(state)
        items = index.query_prefix(query.prefix, query.limit)
        return self._ranked(state, query, [RankedItem(item=it) for it in items])

    def _sort(self, state: CatalogState, query: SortQuery) -> QueryResult:
        ranked = sort_items(state.snapshot.items, query.field, query.order, stable=query.stable)
        return self._ranked(state, query, ranked)

    def _recommend(self, state: CatalogState, query: RecommendQuery) -> QueryResult:
        return self._ranked(state, query, recommend(state.snapshot.items, query.criteria, query.limit))

    def _top_k(self, state: CatalogState, query: TopKQuery) -> QueryResult:
        return self._ranked(state, query, top_scored(state.snapshot.items, query.score_fn, query.k))

    def _nearest(self, state: CatalogState, query: NearestQuery) -> QueryResult:
        ranked = nearest((query.latitude, query.longitude), state.snapshot.items, query.k)
        return self._ranked(state, query, ranked)

    def _budget(self, state: CatalogState, query: BudgetQuery) -> QueryResult:
        selection = optimize_budget(state.snapshot.items, query.budget, query.value_fn, query.cost_fn)
        return QueryResult(kind=query.kind, snapshot_version=state.snapshot.version, selection=selection)

    def _schedule(self, state: CatalogState, query: ScheduleQuery) -> QueryResult:
        schedule = optimize_rental_schedule(query.intervals, query.item_id, weighted=query.weighted)
        return QueryResult(kind=query.kind, snapshot_version=state.snapshot.version, schedule=schedule)

    @staticmethod
    def _ranked(state: CatalogState, query: BaseModel, items) -> QueryResult:
        return QueryResult(kind=query.kind, snapshot_version=state.snapshot.version, items=items)


def _describe(query: BaseModel) -> Dict[str, Any]:
    # callables are not JSON; show their names instead
    out = {}
    for name, value in query:
        out[name] = getattr(value, "__name__", repr(value)) if callable(value) else value
    return out
