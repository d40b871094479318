"""
Shared pytest fixtures for Open Craft tests.

Provides:
  - Temporary save directories (never the real user config dir)
  - The shipped catalog and a tiny hand-built one
  - Session directories and a FastAPI TestClient per test
  - Helpers for writing catalog files to disk
"""

import json
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so we can import app modules
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Anything that falls back to the default save dir writes into a temp dir.
_TEST_HOME = tempfile.mkdtemp(prefix="open_craft_test_")
os.environ["OPEN_CRAFT_HOME"] = _TEST_HOME

DATA_DIR = PROJECT_ROOT / "data"


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def shipped_catalog():
    import catalog_service
    return catalog_service.load_catalog(DATA_DIR)


@pytest.fixture()
def steam_catalog():
    """water, fire, earth, wind, steam with the single recipe water+fire=steam."""
    from catalog_service import Element, build_catalog

    elements = {
        "water": Element("water", "Water", "Primordial"),
        "fire": Element("fire", "Fire", "Primordial"),
        "earth": Element("earth", "Earth", "Primordial"),
        "wind": Element("wind", "Wind", "Primordial"),
        "steam": Element("steam", "Steam", "Atmospheric"),
    }
    return build_catalog(elements, {"water+fire": "steam"})


# ---------------------------------------------------------------------------
# Storage & sessions
# ---------------------------------------------------------------------------

@pytest.fixture()
def store(tmp_path: Path):
    from progress_store import JsonProgressStore
    return JsonProgressStore(tmp_path / "saves")


@pytest.fixture()
def directory(steam_catalog, store):
    from session_service import SessionDirectory
    return SessionDirectory(steam_catalog, store)


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    """A writable copy of the shipped data files."""
    target = tmp_path / "data"
    shutil.copytree(DATA_DIR, target)
    return target


# ---------------------------------------------------------------------------
# FastAPI TestClient
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(shipped_catalog, store) -> Generator[Any, None, None]:
    """Starlette TestClient wired to a fresh app with its own sessions."""
    from fastapi.testclient import TestClient
    from main import create_app

    with TestClient(create_app(shipped_catalog, store)) as c:
        yield c


@pytest.fixture()
def dev_client(shipped_catalog, store) -> Generator[Any, None, None]:
    from fastapi.testclient import TestClient
    from main import create_app

    with TestClient(create_app(shipped_catalog, store, dev_mode=True)) as c:
        yield c


# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    """Stateless helper methods for writing catalog files."""

    @staticmethod
    def write_catalog_files(
        root: Path,
        elements: Optional[Dict[str, Any]] = None,
        recipes: Optional[Dict[str, Any]] = None,
        impossible: Optional[List[Any]] = None,
    ) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        if elements is not None:
            (root / "elements.json").write_text(json.dumps(elements), encoding="utf-8")
        if recipes is not None:
            (root / "recipes.json").write_text(json.dumps(recipes), encoding="utf-8")
        if impossible is not None:
            (root / "impossible.json").write_text(json.dumps(impossible), encoding="utf-8")
        return root

    @staticmethod
    def primordial_elements(*extra: str) -> Dict[str, Dict[str, str]]:
        names = ["water", "fire", "earth", "wind", *extra]
        return {n: {"name": n.replace("-", " ").title(), "category": "Primordial"} for n in names}


@pytest.fixture()
def helpers() -> TestHelpers:
    return TestHelpers()
