import logging
import re
import string
import time
from typing import Any, Dict, Iterable, Iterator, List, Optional

from catalog_engine.core.config import get_settings
from catalog_engine.core.errors import InvalidInputError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


class _Node:
    __slots__ = ("children", "items", "is_key")

    def __init__(self) -> None:
        self.children: Dict[str, "_Node"] = {}
        self.items: List[Any] = []
        self.is_key = False


def _normalize(key: str) -> str:
    return key.strip().lower()


def _identity(item: Any) -> Any:
    return getattr(item, "item_id", None) or id(item)


def keywords(text: Optional[str], min_length: int) -> List[str]:
    """Lower-cased words of `text` with surrounding punctuation stripped, at least `min_length` long."""
    if not text:
        return []
    words = (w.strip(string.punctuation) for w in _WHITESPACE.split(text.lower()))
    return [w for w in words if len(w) >= min_length]


class PrefixIndex:
    """
    Trie mapping lower-cased keys to the items inserted under them.

    insert is O(len(key)); query_prefix is O(len(prefix) + visited nodes).
    Children and per-key items keep insertion order, so results are
    insertion-consistent. Rebuilds are whole-index (see build); delete exists
    for completeness only.
    """

    def __init__(self) -> None:
        self._root = _Node()
        self._size = 0

    def __len__(self) -> int:
        """Number of distinct keys."""
        return self._size

    @classmethod
    def build(cls, items: Iterable[Any], *, min_keyword_length: Optional[int] = None) -> "PrefixIndex":
        """
        Index every item under its full lower-cased name, plus each name token
        and description keyword of at least `min_keyword_length` characters.
        Words shorter than that are only reachable through the full name.
        """
        if min_keyword_length is None:
            min_keyword_length = get_settings().min_keyword_length
        t0 = time.perf_counter()
        index = cls()
        n_items = 0
        for item in items:
            name = getattr(item, "name", None)
            if not name:
                continue
            n_items += 1
            index.insert(name, item)
            for word in keywords(name, min_keyword_length):
                index.insert(word, item)
            for word in keywords(getattr(item, "description", None), min_keyword_length):
                index.insert(word, item)
        logger.info(
            "prefix_index built items=%s keys=%s time=%.4fs", n_items, len(index), time.perf_counter() - t0
        )
        return index

    def insert(self, key: str, item: Any) -> None:
        key = _normalize(key or "")
        if not key:
            return
        node = self._root
        for char in key:
            node = node.children.setdefault(char, _Node())
        if not node.is_key:
            node.is_key = True
            self._size += 1
        if not any(existing is item for existing in node.items):
            node.items.append(item)

    def query_prefix(self, prefix: str, limit: Optional[int] = None) -> List[Any]:
        """
        Up to `limit` distinct items stored under any key starting with `prefix`.
        An empty prefix walks the whole index; an unknown prefix gives [].
        """
        if limit is None:
            limit = get_settings().default_prefix_limit
        if limit < 0:
            raise InvalidInputError(f"limit must be >= 0, got {limit}")
        node = self._find(_normalize(prefix or ""))
        if node is None or limit == 0:
            return []

        results: List[Any] = []
        seen = set()
        for item in self._walk(node):
            ident = _identity(item)
            if ident in seen:
                continue
            seen.add(ident)
            results.append(item)
            if len(results) >= limit:
                break
        return results

    def contains(self, key: str) -> bool:
        node = self._find(_normalize(key or ""))
        return node is not None and node.is_key

    def starts_with(self, prefix: str) -> bool:
        return self._find(_normalize(prefix or "")) is not None

    def count_with_prefix(self, prefix: str) -> int:
        """Number of keys (not items) under `prefix`."""
        node = self._find(_normalize(prefix or ""))
        if node is None:
            return 0
        count = 0
        stack = [node]
        while stack:
            current = stack.pop()
            if current.is_key:
                count += 1
            stack.extend(current.children.values())
        return count

    def delete(self, key: str) -> bool:
        """Remove `key` and prune branches left empty. False if the key was absent."""
        key = _normalize(key or "")
        if not key:
            return False
        path = [self._root]
        for char in key:
            child = path[-1].children.get(char)
            if child is None:
                return False
            path.append(child)
        target = path[-1]
        if not target.is_key:
            return False
        target.is_key = False
        target.items = []
        self._size -= 1

        for depth in range(len(key), 0, -1):
            node = path[depth]
            if node.is_key or node.children:
                break
            del path[depth - 1].children[key[depth - 1]]
        return True

    # --- internals -----------------------------------------------------------

    def _find(self, key: str) -> Optional[_Node]:
        node = self._root
        for char in key:
            node = node.children.get(char)
            if node is None:
                return None
        return node

    def _walk(self, node: _Node) -> Iterator[Any]:
        # pre-order DFS, children in insertion order
        stack = [node]
        while stack:
            current = stack.pop()
            yield from current.items
            stack.extend(reversed(list(current.children.values())))
