import json
import random
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from constants import BOOTSTRAP_ELEMENTS, ELEMENT_CATEGORIES, NAME_SEPARATOR, PAIR_SEPARATOR
from progress_store import DATA_DIR

ELEMENTS_FILE = "elements.json"
RECIPES_FILE = "recipes.json"
IMPOSSIBLE_FILE = "impossible.json"

_WHITESPACE_RE = re.compile(r"\s+")


class CatalogError(ValueError):
    pass


@dataclass(frozen=True)
class Element:
    id: str
    name: str
    category: str = ""


@dataclass(frozen=True)
class Catalog:
    """Read-only game data shared by every session.

    Recipe and impossibility keys are canonical pair keys (see ``pair_key``),
    so a single lookup covers both operand orders.
    """

    elements: Mapping[str, Element]
    recipes: Mapping[str, str]
    impossible: FrozenSet[str]
    # Load-time observations kept for validate_catalog().
    duplicate_element_ids: Tuple[str, ...] = ()
    duplicate_recipe_keys: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.elements)

    def sorted_ids(self) -> List[str]:
        return sorted(self.elements.keys())


def build_catalog(
    elements: Mapping[str, Element],
    recipes: Mapping[str, str],
    impossible: Sequence[str] = (),
) -> Catalog:
    """Assemble a Catalog from already-parsed values, canonicalizing pair keys."""
    canonical_recipes: Dict[str, str] = {}
    for raw_key, result in recipes.items():
        a, b = split_pair(raw_key)
        canonical_recipes.setdefault(pair_key(a, b), normalize_element_id(result))
    canonical_impossible = frozenset(pair_key(*split_pair(raw)) for raw in impossible)
    return Catalog(
        elements=MappingProxyType(dict(elements)),
        recipes=MappingProxyType(canonical_recipes),
        impossible=canonical_impossible,
    )


# ── Identifiers ────────────────────────────────────────────────────────────

def normalize_element_id(raw: Any) -> str:
    """Trim, lower-case and join inner whitespace with the name separator."""
    text = str(raw or "").strip().lower()
    return _WHITESPACE_RE.sub(NAME_SEPARATOR, text)


def pair_key(a: Any, b: Any) -> str:
    first, second = sorted((normalize_element_id(a), normalize_element_id(b)))
    return f"{first}{PAIR_SEPARATOR}{second}"


def split_pair(raw: Any) -> Tuple[str, str]:
    parts = str(raw or "").split(PAIR_SEPARATOR)
    if len(parts) != 2:
        raise CatalogError(f"Invalid combination format: {raw!r}")
    a, b = normalize_element_id(parts[0]), normalize_element_id(parts[1])
    if not a or not b:
        raise CatalogError(f"Invalid combination format: {raw!r}")
    return a, b


# ── Loading ────────────────────────────────────────────────────────────────

def _load_json_file(path: Path, expected: type) -> Any:
    if not path.is_file():
        raise CatalogError(f"Data file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(payload, expected):
        raise CatalogError(f"Top-level JSON in {path} must be {'an object' if expected is dict else 'an array'}")
    return payload


def _parse_elements(raw: Dict[str, Any], path: Path) -> Tuple[Dict[str, Element], List[str]]:
    elements: Dict[str, Element] = {}
    duplicates: List[str] = []
    for raw_id, entry in raw.items():
        element_id = normalize_element_id(raw_id)
        if not element_id:
            raise CatalogError(f"{path}: element ids must be non-empty strings")
        if not isinstance(entry, dict):
            raise CatalogError(f"{path}: element '{raw_id}' must be an object")
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise CatalogError(f"{path}: element '{raw_id}' needs a non-empty 'name'")
        category = entry.get("category") or ""
        if not isinstance(category, str):
            raise CatalogError(f"{path}: element '{raw_id}' has a non-string 'category'")
        if element_id in elements:
            duplicates.append(str(raw_id))
            continue
        elements[element_id] = Element(id=element_id, name=name.strip(), category=category.strip())
    return elements, duplicates


def load_catalog(data_dir: Optional[Path] = None) -> Catalog:
    """Read elements, recipes and impossibilities from ``data_dir``.

    Raises CatalogError if any of the three files is missing or malformed;
    there is no partial catalog. Cross references are not checked here,
    that is what validate_catalog() is for.
    """
    root = Path(data_dir) if data_dir is not None else DATA_DIR
    elements_path = root / ELEMENTS_FILE
    recipes_path = root / RECIPES_FILE
    impossible_path = root / IMPOSSIBLE_FILE

    elements, duplicate_ids = _parse_elements(_load_json_file(elements_path, dict), elements_path)

    recipes: Dict[str, str] = {}
    duplicate_recipes: List[str] = []
    for raw_key, raw_result in _load_json_file(recipes_path, dict).items():
        if not isinstance(raw_result, str) or not raw_result.strip():
            raise CatalogError(f"{recipes_path}: recipe '{raw_key}' must map to an element id")
        try:
            key = pair_key(*split_pair(raw_key))
        except CatalogError as exc:
            raise CatalogError(f"{recipes_path}: {exc}") from exc
        if key in recipes:
            duplicate_recipes.append(str(raw_key))
            continue
        recipes[key] = normalize_element_id(raw_result)

    impossible = set()
    for raw in _load_json_file(impossible_path, list):
        if not isinstance(raw, str):
            raise CatalogError(f"{impossible_path}: entries must be strings like 'a+b'")
        try:
            impossible.add(pair_key(*split_pair(raw)))
        except CatalogError as exc:
            raise CatalogError(f"{impossible_path}: {exc}") from exc

    return Catalog(
        elements=MappingProxyType(elements),
        recipes=MappingProxyType(recipes),
        impossible=frozenset(impossible),
        duplicate_element_ids=tuple(duplicate_ids),
        duplicate_recipe_keys=tuple(duplicate_recipes),
    )


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    return load_catalog(DATA_DIR)


# ── Lookups ────────────────────────────────────────────────────────────────

def lookup_recipe(catalog: Catalog, a: Any, b: Any) -> Optional[str]:
    """What would ``a`` and ``b`` make, regardless of who is asking."""
    return catalog.recipes.get(pair_key(a, b))


def is_impossible(catalog: Catalog, a: Any, b: Any) -> bool:
    return pair_key(a, b) in catalog.impossible


def element_name(catalog: Catalog, element_id: Any) -> str:
    element_id = normalize_element_id(element_id)
    element = catalog.elements.get(element_id)
    return element.name if element else element_id


def build_element_categories_payload(
    catalog: Catalog,
    element_ids: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Group elements (all, or just ``element_ids``) by category for display."""
    ordered_category_ids = [c["id"] for c in ELEMENT_CATEGORIES]
    if element_ids is None:
        selected = list(catalog.elements.values())
    else:
        selected = [catalog.elements[e] for e in element_ids if e in catalog.elements]

    grouped: Dict[str, List[Dict[str, str]]] = {category_id: [] for category_id in ordered_category_ids}
    for element in sorted(selected, key=lambda e: e.name.lower()):
        category_id = element.category or "Uncategorized"
        grouped.setdefault(category_id, []).append(
            {"id": element.id, "name": element.name, "category": element.category}
        )

    extra_category_ids = sorted(cid for cid in grouped.keys() if cid not in ordered_category_ids)
    return {
        "categories": [
            {"id": category_id, "elements": grouped[category_id]}
            for category_id in ordered_category_ids + extra_category_ids
        ],
    }


# ── Untried combinations ──────────────────────────────────────────────────

def untried_pairs(catalog: Catalog) -> List[Tuple[str, str]]:
    """Every pair (self-pairs included) with neither a recipe nor an impossibility entry.

    Order follows the sorted id list, so repeated runs over the same data
    give the same sequence.
    """
    ids = catalog.sorted_ids()
    pairs: List[Tuple[str, str]] = []
    for i, first in enumerate(ids):
        for second in ids[i:]:
            key = pair_key(first, second)
            if key in catalog.recipes or key in catalog.impossible:
                continue
            pairs.append((first, second))
    return pairs


def format_combo(catalog: Catalog, pair: Tuple[str, str]) -> str:
    return f"{element_name(catalog, pair[0])} + {element_name(catalog, pair[1])}"


def untried_combinations(catalog: Catalog) -> List[str]:
    return [format_combo(catalog, pair) for pair in untried_pairs(catalog)]


def pick_random_combination(combos: Sequence[str], rng: Optional[random.Random] = None) -> Optional[str]:
    if not combos:
        return None
    return (rng or random).choice(list(combos))


# ── Offline validation ────────────────────────────────────────────────────

def validate_catalog(catalog: Catalog) -> List[str]:
    """Return content-authoring problems; an empty list means the data is consistent."""
    errors: List[str] = []

    for raw_id in catalog.duplicate_element_ids:
        errors.append(f"Duplicate element index (case-insensitive): {raw_id}")

    seen_names: Dict[str, str] = {}
    for element_id in catalog.sorted_ids():
        name = catalog.elements[element_id].name
        if name in seen_names:
            errors.append(f"Duplicate element name: {name} ({seen_names[name]}, {element_id})")
        else:
            seen_names[name] = element_id

    for raw_key in catalog.duplicate_recipe_keys:
        errors.append(f"Duplicate recipe combination: {raw_key}")

    for key in sorted(catalog.recipes):
        result = catalog.recipes[key]
        for operand in split_pair(key):
            if operand not in catalog.elements:
                errors.append(f"Recipe {key} uses non-existent element: {operand}")
        if result not in catalog.elements:
            errors.append(f"Recipe {key} result is non-existent element: {result}")

    for key in sorted(catalog.impossible):
        for operand in split_pair(key):
            if operand not in catalog.elements:
                errors.append(f"Impossible combination {key} uses non-existent element: {operand}")
        if key in catalog.recipes:
            errors.append(f"Combination {key} is listed as impossible but has a recipe")

    for element_id in BOOTSTRAP_ELEMENTS:
        if element_id not in catalog.elements:
            errors.append(f"Bootstrap element missing from catalog: {element_id}")

    return errors
