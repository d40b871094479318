"""
Per-player discovery state and the combination rules that grow it.

A ledger only ever gains elements: ``add_discovered`` is the single
mutator and a successful ``combine`` is its only caller during play.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Set

from catalog_service import Catalog, lookup_recipe, normalize_element_id
from constants import BOOTSTRAP_ELEMENTS
from progress_store import Identity, JsonProgressStore, ProgressStoreError


class CombineStatus(str, Enum):
    CREATED = "created"
    NO_RECIPE = "no_recipe"
    NOT_DISCOVERED = "not_discovered"


@dataclass(frozen=True)
class CombineResult:
    status: CombineStatus
    element_id: Optional[str] = None
    is_new: bool = False

    @property
    def ok(self) -> bool:
        return self.status is CombineStatus.CREATED


@dataclass(frozen=True)
class SaveOutcome:
    ok: bool
    error: Optional[str] = None


class DiscoveryLedger:
    def __init__(self, element_ids: Iterable[str] = ()):
        self._discovered: Set[str] = set()
        for element_id in element_ids:
            self.add_discovered(element_id)

    def __contains__(self, element_id: Any) -> bool:
        return self.is_discovered(element_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self.discovered_list())

    def __len__(self) -> int:
        return len(self._discovered)

    def is_discovered(self, element_id: Any) -> bool:
        return normalize_element_id(element_id) in self._discovered

    def add_discovered(self, element_id: Any) -> bool:
        """Insert ``element_id``; returns False if it was already known."""
        element_id = normalize_element_id(element_id)
        if not element_id or element_id in self._discovered:
            return False
        self._discovered.add(element_id)
        return True

    def seed_bootstrap(self) -> bool:
        """Make sure every bootstrap element is known; True if any was missing."""
        added = False
        for element_id in BOOTSTRAP_ELEMENTS:
            added = self.add_discovered(element_id) or added
        return added

    def discovered_list(self) -> List[str]:
        return sorted(self._discovered)

    @classmethod
    def load(cls, store: JsonProgressStore, identity: Identity) -> "DiscoveryLedger":
        """Read a saved ledger; a missing or damaged save means a new player."""
        try:
            element_ids = store.load(identity)
        except ProgressStoreError as exc:
            logging.warning("Ignoring progress for %s: %s", identity, exc)
            element_ids = None
        return cls(element_ids or ())

    def save(self, store: JsonProgressStore, identity: Identity) -> SaveOutcome:
        try:
            store.save(identity, self.discovered_list())
        except ProgressStoreError as exc:
            logging.error("Progress for %s not saved: %s", identity, exc)
            return SaveOutcome(ok=False, error=str(exc))
        return SaveOutcome(ok=True)


def combine(catalog: Catalog, ledger: DiscoveryLedger, a: Any, b: Any) -> CombineResult:
    first, second = normalize_element_id(a), normalize_element_id(b)
    if not ledger.is_discovered(first) or not ledger.is_discovered(second):
        return CombineResult(status=CombineStatus.NOT_DISCOVERED)

    result = lookup_recipe(catalog, first, second)
    if result is None:
        return CombineResult(status=CombineStatus.NO_RECIPE)

    is_new = ledger.add_discovered(result)
    return CombineResult(status=CombineStatus.CREATED, element_id=result, is_new=is_new)
