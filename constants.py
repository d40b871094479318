"""
Canonical shared constants for the Open Craft game.

The terminal loop, the chat bot and the HTTP routes all read from here;
this module is the single source of truth.
"""

from typing import Any, Dict, List, Tuple

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

PAIR_SEPARATOR = "+"
NAME_SEPARATOR = "-"

# Every new player starts with these.
BOOTSTRAP_ELEMENTS: Tuple[str, ...] = ("water", "fire", "earth", "wind")

LOCAL_IDENTITY = "local"

# ---------------------------------------------------------------------------
# Element categories
# ---------------------------------------------------------------------------

ELEMENT_CATEGORIES: List[Dict[str, Any]] = [
    {"id": "Primordial", "button": "🌟 Primordial"},
    {"id": "Natural", "button": "🌿 Natural"},
    {"id": "Chemical", "button": "⚗️ Chemical"},
    {"id": "Atmospheric", "button": "🌪️ Atmospheric"},
    {"id": "Celestial", "button": "✨ Celestial"},
    {"id": "Biological", "button": "🧬 Biological"},
    {"id": "Technological", "button": "⚡ Technological"},
    {"id": "Mythical", "button": "🔮 Mythical"},
]

CATEGORY_BY_BUTTON: Dict[str, str] = {c["button"]: c["id"] for c in ELEMENT_CATEGORIES}

# ---------------------------------------------------------------------------
# Player-facing text
# ---------------------------------------------------------------------------

HINTS: List[str] = [
    "Try combining basic elements first",
    "Some elements can be combined in multiple ways",
    "Look for logical combinations (e.g., water + fire = steam)",
]

MSG_CANNOT_COMBINE = "These elements cannot be combined"
MSG_NOT_DISCOVERED = "You haven't discovered one or both elements yet!"
