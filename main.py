"""
Open Craft entry point.

  python main.py                  play in the terminal
  python main.py --dev            terminal with the recipe-authoring helpers
  python main.py --api :8080      serve the HTTP API and chat bot webhook
  python main.py --validate       check the data files and exit
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import uvicorn
from fastapi import FastAPI

import catalog_service
from bot_router import router as bot_router
from bot_service import ChatBot
from catalog_service import Catalog, CatalogError
from cli import TerminalGame
from combine_router import router as combine_router
from progress_store import JsonProgressStore
from session_service import SessionDirectory

LOG_LEVEL = os.environ.get("OPEN_CRAFT_LOG_LEVEL", "WARNING").strip().upper()


def create_app(
    catalog: Optional[Catalog] = None,
    store: Optional[JsonProgressStore] = None,
    *,
    dev_mode: bool = False,
) -> FastAPI:
    """Build an app with its own session directory."""
    if catalog is None:
        catalog = catalog_service.default_catalog()
    directory = SessionDirectory(catalog, store or JsonProgressStore())

    app = FastAPI(title="Open Craft")
    app.state.session_directory = directory
    app.state.chat_bot = ChatBot(directory)
    app.state.dev_mode = dev_mode
    app.include_router(combine_router)
    app.include_router(bot_router)
    return app


def parse_listen_address(raw: str) -> Tuple[str, int]:
    """``":8080"`` -> ("0.0.0.0", 8080); ``"127.0.0.1:9000"`` -> ("127.0.0.1", 9000)."""
    host, sep, port = str(raw).strip().rpartition(":")
    if not sep:
        host, port = "", raw
    try:
        port_num = int(port)
    except ValueError as exc:
        raise ValueError(f"Invalid listen address: {raw!r}") from exc
    if not 0 < port_num < 65536:
        raise ValueError(f"Port out of range: {port_num}")
    return host or "0.0.0.0", port_num


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="open-craft", description="Combine elements to discover new ones.")
    parser.add_argument("--dev", action="store_true", help="enable developer mode")
    parser.add_argument("--api", metavar="ADDR", help="start API server on ADDR (e.g. :8080)")
    parser.add_argument("--validate", action="store_true", help="check the data files and exit")
    parser.add_argument("--data-dir", type=Path, default=None, help="directory holding the catalog JSON files")
    parser.add_argument("--save-dir", type=Path, default=None, help="directory for save files")
    return parser


def _report_validation(catalog: Catalog) -> int:
    errors: List[str] = catalog_service.validate_catalog(catalog)
    for error in errors:
        print(error)
    if errors:
        print(f"{len(errors)} problem(s) found in the game data.")
        return 1
    print(
        f"Game data OK: {len(catalog)} elements, {len(catalog.recipes)} recipes, "
        f"{len(catalog.impossible)} impossible combinations."
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")

    try:
        if args.dev or args.data_dir is not None:
            catalog = catalog_service.load_catalog(args.data_dir)
        else:
            catalog = catalog_service.default_catalog()
    except CatalogError as exc:
        print(f"Failed to load game state: {exc}")
        return 1

    if args.validate:
        return _report_validation(catalog)

    store = JsonProgressStore(args.save_dir)

    if args.api:
        try:
            host, port = parse_listen_address(args.api)
        except ValueError as exc:
            print(exc)
            return 2
        app = create_app(catalog, store, dev_mode=args.dev)
        print(f"Starting API server on port {args.api}...")
        uvicorn.run(app, host=host, port=port)
        return 0

    directory = SessionDirectory(catalog, store)
    return TerminalGame(directory, dev_mode=args.dev, data_dir=args.data_dir).run()


if __name__ == "__main__":
    sys.exit(main())
