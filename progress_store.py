import json
import os
import sys
from pathlib import Path
from typing import List, Optional, Union

from constants import LOCAL_IDENTITY

APP_DIR = Path(__file__).resolve().parent
DATA_DIR = Path(os.environ.get("OPEN_CRAFT_DATA_DIR", str(APP_DIR / "data")))

Identity = Union[str, int]


class ProgressStoreError(Exception):
    pass


def dump_progress(element_ids: List[str]) -> str:
    """Serialized form of a save file, shared by disk writes and downloads."""
    return json.dumps(list(element_ids), indent=2)


def default_save_dir() -> Path:
    """Per-user directory holding save files, created lazily on first save."""
    override = os.environ.get("OPEN_CRAFT_HOME", "").strip()
    if override:
        return Path(override)
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "open-craft"


class JsonProgressStore:
    """One JSON array of discovered element ids per identity.

    The local player lives in ``<root>/progress.json``; chat and API players
    get ``<root>/telegram/<id>.json``.
    """

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else default_save_dir()

    def path_for(self, identity: Identity) -> Path:
        """Raises ValueError for anything other than LOCAL_IDENTITY or an int chat id.

        That is a caller bug, not a storage failure, so it is not wrapped in
        ProgressStoreError.
        """
        if identity == LOCAL_IDENTITY:
            return self.root / "progress.json"
        if isinstance(identity, bool) or not isinstance(identity, int):
            raise ValueError(f"Unsupported player identity: {identity!r}")
        return self.root / "telegram" / f"{identity}.json"

    def exists(self, identity: Identity) -> bool:
        return self.path_for(identity).is_file()

    def load(self, identity: Identity) -> Optional[List[str]]:
        """Return the stored id list, or None when nothing was saved yet."""
        path = self.path_for(identity)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ProgressStoreError(f"Unreadable progress file {path}: {exc}") from exc
        if not isinstance(payload, list) or any(not isinstance(v, str) for v in payload):
            raise ProgressStoreError(f"Progress file {path} must hold a list of element ids")
        return payload

    def save(self, identity: Identity, element_ids: List[str]) -> Path:
        path = self.path_for(identity)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(dump_progress(element_ids), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise ProgressStoreError(f"Failed to write progress file {path}: {exc}") from exc
        return path
