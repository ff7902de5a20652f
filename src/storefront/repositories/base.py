from abc import ABC
from contextlib import contextmanager
from threading import RLock
from typing import TypeVar, Generic, Optional, List, Dict, Callable, Iterator
import logging

T = TypeVar('T')

logger = logging.getLogger(__name__)


class InMemoryRepository(ABC, Generic[T]):
    """
    Base ledger keyed by string id, held in process memory.

    Every read-modify-write goes through `locked()` so concurrent requests
    never observe a half-applied change. Iteration order is insertion order.
    Contents are lost on restart; swapping in an external store means
    re-implementing these methods with compare-and-set semantics.
    """

    entity_name = "Entity"

    def __init__(self):
        self._entries: Dict[str, T] = {}
        self._lock = RLock()

    @contextmanager
    def locked(self) -> Iterator[Dict[str, T]]:
        """Hold the ledger lock and expose the underlying mapping"""
        with self._lock:
            yield self._entries

    def add(self, entity_id: str, entity: T) -> T:
        with self._lock:
            self._entries[entity_id] = entity
        logger.debug(f"{self.entity_name} {entity_id} stored")
        return entity

    def delete(self, entity_id: str) -> Optional[T]:
        """Remove and return the entity, or None when absent"""
        with self._lock:
            return self._entries.pop(entity_id, None)

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        with self._lock:
            return [entity for entity in self._entries.values() if predicate(entity)]

    def delete_where(self, predicate: Callable[[T], bool]) -> int:
        """Delete every entity matching the predicate; returns how many went"""
        with self._lock:
            doomed = [key for key, entity in self._entries.items() if predicate(entity)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def count(self) -> int:
        with self._lock:
            return len(self._entries)
