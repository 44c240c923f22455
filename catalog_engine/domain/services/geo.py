"""
Distance ranking.

Nearest-item lookup uses direct great-circle distance (one query-point ->
item edge per item). The weighted-graph Dijkstra below is the multi-hop
building block; on today's data it only ever sees those direct edges.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from catalog_engine.core.config import get_settings
from catalog_engine.core.errors import InvalidInputError
from catalog_engine.domain.models.item import Item, RankedItem
from catalog_engine.domain.services.comparators import by_key, descending
from catalog_engine.domain.services.sorting import stable_sort
from catalog_engine.domain.services.top_k import BinaryHeap

logger = logging.getLogger(__name__)


def _validate_point(lat: float, lon: float) -> None:
    if lat is None or lon is None:
        raise InvalidInputError("latitude and longitude are required")
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidInputError(f"coordinates must be finite, got ({lat}, {lon})")
    if not -90 <= lat <= 90:
        raise InvalidInputError(f"latitude out of range [-90, 90]: {lat}")
    if not -180 <= lon <= 180:
        raise InvalidInputError(f"longitude out of range [-180, 180]: {lon}")


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in km. Out-of-range coordinates are rejected, never clamped."""
    _validate_point(lat1, lon1)
    _validate_point(lat2, lon2)
    radius = get_settings().earth_radius_km
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push `a` a hair past 1 for antipodal points
    a = min(1.0, a)
    return radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def nearest(point: Tuple[float, float], items: Iterable[Item], k: int) -> List[RankedItem]:
    """
    The k located items closest to `point`, ascending by distance (km in
    `score`). Items without coordinates are skipped; ties keep catalog order.
    """
    if k < 0:
        raise InvalidInputError(f"k must be >= 0, got {k}")
    lat, lon = point
    _validate_point(lat, lon)

    ranked = [
        RankedItem(item=item, score=haversine_distance(lat, lon, item.latitude, item.longitude))
        for item in items
        if item.has_location
    ]
    ordered = stable_sort(ranked, by_key(lambda r: r.score))
    logger.debug("nearest located=%s k=%s", len(ranked), k)
    return ordered[:k]


# --- weighted graph ----------------------------------------------------------

@dataclass
class WeightedGraph:
    """Directed adjacency list with non-negative edge weights."""
    adjacency: Dict[Hashable, List[Tuple[Hashable, float]]] = field(default_factory=dict)

    def add_node(self, node: Hashable) -> None:
        self.adjacency.setdefault(node, [])

    def add_edge(self, source: Hashable, target: Hashable, weight: float, *, undirected: bool = False) -> None:
        if weight is None or not math.isfinite(weight) or weight < 0:
            raise InvalidInputError(f"edge weight must be a finite non-negative number, got {weight}")
        self.add_node(source)
        self.add_node(target)
        self.adjacency[source].append((target, weight))
        if undirected:
            self.adjacency[target].append((source, weight))

    def neighbors(self, node: Hashable) -> List[Tuple[Hashable, float]]:
        return self.adjacency.get(node, [])

    @property
    def nodes(self) -> List[Hashable]:
        return list(self.adjacency)

    @classmethod
    def from_items(cls, items: Iterable[Item], threshold_km: Optional[float] = None) -> "WeightedGraph":
        """
        One node per located item (keyed by item_id), undirected edges between
        every pair closer than `threshold_km`, weighted by Haversine distance.
        """
        if threshold_km is None:
            threshold_km = get_settings().graph_edge_threshold_km
        if threshold_km < 0:
            raise InvalidInputError(f"threshold_km must be >= 0, got {threshold_km}")
        located = [it for it in items if it.has_location]
        graph = cls()
        for it in located:
            graph.add_node(it.item_id)
        for i, a in enumerate(located):
            for b in located[i + 1:]:
                d = haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)
                if d <= threshold_km:
                    graph.add_edge(a.item_id, b.item_id, d, undirected=True)
        return graph


@dataclass
class ShortestPaths:
    source: Hashable
    distances: Dict[Hashable, float]
    previous: Dict[Hashable, Optional[Hashable]]

    def distance_to(self, node: Hashable) -> float:
        """Unreachable or unknown nodes are infinitely far, not an error."""
        return self.distances.get(node, math.inf)


def shortest_paths(graph: WeightedGraph, source: Hashable, target: Optional[Hashable] = None) -> ShortestPaths:
    """
    Dijkstra from `source`. O((V + E) log V) with the shared binary heap.
    Stops early once `target` is settled, if given.
    """
    distances: Dict[Hashable, float] = {node: math.inf for node in graph.nodes}
    previous: Dict[Hashable, Optional[Hashable]] = {node: None for node in graph.nodes}
    distances[source] = 0.0
    previous.setdefault(source, None)

    # min-distance first: invert the ascending comparator
    frontier: BinaryHeap[Tuple[float, Hashable]] = BinaryHeap(descending(by_key(lambda entry: entry[0])))
    frontier.insert((0.0, source))
    settled = set()

    while frontier:
        dist, node = frontier.pop()
        if node in settled:
            continue
        settled.add(node)
        if target is not None and node == target:
            break
        for neighbor, weight in graph.neighbors(node):
            if neighbor in settled:
                continue
            candidate = dist + weight
            if candidate < distances.get(neighbor, math.inf):
                distances[neighbor] = candidate
                previous[neighbor] = node
                frontier.insert((candidate, neighbor))

    return ShortestPaths(source=source, distances=distances, previous=previous)


def reconstruct_path(paths: ShortestPaths, target: Hashable) -> List[Hashable]:
    """Node list source -> target, or [] when target is unreachable."""
    if math.isinf(paths.distance_to(target)):
        return []
    path = []
    node: Optional[Hashable] = target
    while node is not None:
        path.append(node)
        node = paths.previous.get(node)
    path.reverse()
    return path if path and path[0] == paths.source else []


def nearest_by_graph(
    graph: WeightedGraph,
    source: Hashable,
    items: Sequence[Item],
    k: int,
) -> List[RankedItem]:
    """k items closest to `source` along graph edges; unreachable items are dropped."""
    if k < 0:
        raise InvalidInputError(f"k must be >= 0, got {k}")
    paths = shortest_paths(graph, source)
    ranked: List[RankedItem] = []
    for item in items:
        d = paths.distance_to(item.item_id)
        if not math.isinf(d):
            ranked.append(RankedItem(item=item, score=d))
    return stable_sort(ranked, by_key(lambda r: r.score))[:k]
