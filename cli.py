"""
Terminal front-end: a numbered menu over the local player's session.

Progress is saved after every new discovery and again on "Save and Exit".
Developer mode adds the untried-combination list and the recipe creator
flow, which re-reads the data files from disk on every round.
"""

import random
import subprocess
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional, TextIO

import catalog_service
from catalog_service import CatalogError, element_name
from constants import HINTS, LOCAL_IDENTITY
from discovery_service import CombineStatus
from session_service import Session, SessionDirectory

SLOW_PRINT_DELAY_S = 0.03


def clear_screen(out: TextIO) -> None:
    if sys.platform == "win32":
        subprocess.run(["cmd", "/c", "cls"], check=False)
    else:
        out.write("\033[H\033[2J")
        out.flush()


class TerminalGame:
    def __init__(
        self,
        directory: SessionDirectory,
        *,
        dev_mode: bool = False,
        data_dir: Optional[Path] = None,
        input_fn: Callable[[str], str] = input,
        out: Optional[TextIO] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.directory = directory
        self.dev_mode = dev_mode
        self.data_dir = data_dir
        self._input = input_fn
        self.out = out or sys.stdout
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def session(self) -> Session:
        return self.directory.get_or_create(LOCAL_IDENTITY)

    # ── I/O helpers ────────────────────────────────────────────────────────

    def _say(self, text: str = "") -> None:
        self.out.write(text + "\n")

    def _say_slowly(self, text: str, pause_s: float = 0.0) -> None:
        for char in text:
            self.out.write(char)
            self.out.flush()
            self._sleep(SLOW_PRINT_DELAY_S)
        self.out.write("\n")
        if pause_s:
            self._sleep(pause_s)

    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def _print_discovered(self) -> None:
        session = self.session
        for element_id in session.discovered_list():
            self._say(f"- {element_name(session.catalog, element_id)}")

    # ── Main loop ──────────────────────────────────────────────────────────

    def run(self) -> int:
        try:
            while True:
                exit_code = self._menu_round()
                if exit_code is not None:
                    return exit_code
        except (EOFError, KeyboardInterrupt):
            self._say()
            return self._save_and_exit()

    def _menu_round(self) -> Optional[int]:
        """Run one menu interaction; returns an exit code once the player leaves."""
        session = self.session
        clear_screen(self.out)
        self._say("\n🌟 === Open Craft === 🌟")
        self._say(f"\nDiscovered Elements: {len(session.ledger)}/{len(session.catalog)}")
        self._say("\n1. 🔮 Combine Elements")
        self._say("2. 📚 View Discovered Elements")
        self._say("3. 💡 Show Hints")
        self._say("4. 💾 Save and Exit")
        if self.dev_mode:
            self._say("5. 🔍 View Untried Combinations (Dev)")
            self._say("6. ⚡ Recipe Creator Flow (Dev)")

        choice = self._ask("\nChoose an option: ")
        if choice == "1":
            self._combine()
        elif choice == "2":
            self._say("\n=== Discovered Elements ===")
            self._print_discovered()
            self._ask("\nPress Enter to continue...")
        elif choice == "3":
            self._say("\n=== Hints ===")
            for i, hint in enumerate(HINTS, start=1):
                self._say(f"{i}. {hint}")
            self._ask("\nPress Enter to continue...")
        elif choice == "4":
            return self._save_and_exit()
        elif choice == "5" and self.dev_mode:
            self._show_untried()
        elif choice == "6" and self.dev_mode:
            self._recipe_creator()
        else:
            self._say_slowly("Invalid choice.", pause_s=1.0)
        return None

    # ── Actions ────────────────────────────────────────────────────────────

    def _combine(self) -> None:
        self._say("\n=== Available Elements ===")
        self._print_discovered()

        first = self._ask("\nFirst element: ")
        second = self._ask("Second element: ")

        session = self.session
        result = session.combine(first, second)
        if result.status is CombineStatus.NOT_DISCOVERED:
            self._say_slowly("❌ You haven't discovered one or both elements yet!", pause_s=2.0)
            return
        if result.ok:
            self._say_slowly(f"✨ You created: {element_name(session.catalog, result.element_id)}!")
            outcome = session.commit()
            if not outcome.ok:
                self._say(f"Failed to save progress: {outcome.error}")
        else:
            self._say_slowly("❌ These elements cannot be combined.")
        self._sleep(2.0)

    def _save_and_exit(self) -> int:
        outcome = self.session.commit()
        if not outcome.ok:
            self._say(f"Failed to save progress: {outcome.error}")
            return 1
        self._say_slowly("Thanks for playing! Your progress has been saved.")
        return 0

    def _show_untried(self) -> None:
        self._say("\n=== Untried Combinations ===")
        combos = self.session.untried_combinations()
        if not combos:
            self._say("You've tried all possible combinations!")
        else:
            self._say(f"\nFound {len(combos)} untried combinations:\n")
            for combo in combos:
                self._say(combo)
        self._ask("\nPress Enter to continue...")

    def _recipe_creator(self) -> None:
        while True:
            clear_screen(self.out)
            self._say("\n=== Recipe Creator Flow ===")

            try:
                catalog = catalog_service.load_catalog(self.data_dir)
            except CatalogError as exc:
                self._say(f"Error reloading game state: {exc}")
                self._ask("\nPress Enter to return to main menu...")
                return
            self.directory.replace_catalog(catalog)

            combos: List[str] = catalog_service.untried_combinations(catalog)
            if not combos:
                self._say("\nNo more combinations available to create recipes for!")
                self._ask("\nPress Enter to return to main menu...")
                return

            combo = catalog_service.pick_random_combination(combos, self._rng)
            self._say(f"\nRemaining possible combinations: {len(combos)}\n")
            self._say(f"Suggested combination to create recipe for:\n{combo}\n")
            self._say("Options:")
            self._say("1. Next combination")
            self._say("2. Return to main menu")

            if self._ask("\nChoice: ") != "1":
                return
