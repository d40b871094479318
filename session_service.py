import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import catalog_service
from catalog_service import Catalog, Element
from discovery_service import CombineResult, DiscoveryLedger, SaveOutcome, combine
from progress_store import Identity, JsonProgressStore, dump_progress


class Session:
    """One player's ledger paired with the shared catalog.

    ``lock`` serializes the combine-then-save sequence for this identity;
    different identities never share a lock.
    """

    def __init__(self, identity: Identity, catalog: Catalog, ledger: DiscoveryLedger, store: JsonProgressStore):
        self.identity = identity
        self.catalog = catalog
        self.ledger = ledger
        self._store = store
        self.lock = threading.RLock()

    @property
    def save_path(self) -> Path:
        return self._store.path_for(self.identity)

    def has_save_file(self) -> bool:
        return self._store.exists(self.identity)

    def export_progress(self) -> str:
        return dump_progress(self.ledger.discovered_list())

    def is_discovered(self, element_id: str) -> bool:
        return self.ledger.is_discovered(element_id)

    def discovered_list(self) -> List[str]:
        return self.ledger.discovered_list()

    def discovered_elements(self) -> List[Element]:
        return [self.catalog.elements[e] for e in self.ledger.discovered_list() if e in self.catalog.elements]

    def discovered_in_category(self, category: str) -> List[Element]:
        return [e for e in self.discovered_elements() if e.category == category]

    def untried_combinations(self) -> List[str]:
        return catalog_service.untried_combinations(self.catalog)

    def combine(self, a: str, b: str) -> CombineResult:
        with self.lock:
            return combine(self.catalog, self.ledger, a, b)

    def commit(self) -> SaveOutcome:
        with self.lock:
            return self.ledger.save(self._store, self.identity)

    def combine_and_commit(self, a: str, b: str) -> Tuple[CombineResult, Optional[SaveOutcome]]:
        with self.lock:
            result = combine(self.catalog, self.ledger, a, b)
            outcome = self.commit() if result.ok else None
        return result, outcome


class SessionDirectory:
    """Identity -> Session cache, filled lazily and never evicted."""

    def __init__(self, catalog: Catalog, store: JsonProgressStore):
        self._catalog = catalog
        self._store = store
        self._sessions: Dict[Identity, Session] = {}
        self._lock = threading.Lock()

    def __contains__(self, identity: Identity) -> bool:
        with self._lock:
            return identity in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def get_or_create(self, identity: Identity) -> Session:
        with self._lock:
            session = self._sessions.get(identity)
            if session is None:
                ledger = DiscoveryLedger.load(self._store, identity)
                session = Session(identity, self._catalog, ledger, self._store)
                if ledger.seed_bootstrap():
                    session.commit()
                self._sessions[identity] = session
            return session

    @contextmanager
    def locked(self, identity: Identity) -> Iterator[Session]:
        session = self.get_or_create(identity)
        with session.lock:
            yield session

    def replace_catalog(self, catalog: Catalog) -> None:
        with self._lock:
            self._catalog = catalog
            for session in self._sessions.values():
                with session.lock:
                    session.catalog = catalog
