"""
Terminal front-end and entry point tests.

The menu loop is driven with scripted input and a StringIO output, and
sleeping is stubbed out.
"""

import io
import json
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


def _game(directory, answers, **kwargs):
    from cli import TerminalGame

    scripted = iter(answers)

    def fake_input(prompt):
        try:
            return next(scripted)
        except StopIteration:
            raise EOFError

    out = io.StringIO()
    game = TerminalGame(directory, input_fn=fake_input, out=out, sleep=lambda s: None, **kwargs)
    return game, out


class TestMenuLoop:
    def test_combine_then_save_and_exit(self, directory, store):
        game, out = _game(directory, ["1", "Water", "FIRE", "4"])
        assert game.run() == 0
        text = out.getvalue()
        assert "Discovered Elements: 4/5" in text
        assert "✨ You created: Steam!" in text
        assert "Thanks for playing! Your progress has been saved." in text
        assert "steam" in json.loads(store.path_for("local").read_text(encoding="utf-8"))

    def test_no_recipe(self, directory):
        game, out = _game(directory, ["1", "earth", "wind", "4"])
        game.run()
        assert "❌ These elements cannot be combined." in out.getvalue()
        assert not directory.get_or_create("local").is_discovered("steam")

    def test_undiscovered_element(self, directory):
        game, out = _game(directory, ["1", "steam", "water", "4"])
        game.run()
        assert "❌ You haven't discovered one or both elements yet!" in out.getvalue()

    def test_view_discovered_and_hints(self, directory):
        game, out = _game(directory, ["2", "", "3", "", "4"])
        game.run()
        text = out.getvalue()
        assert "=== Discovered Elements ===" in text
        assert "- Earth\n- Fire\n- Water\n- Wind" in text
        assert "2. Some elements can be combined in multiple ways" in text

    def test_dev_options_hidden_by_default(self, directory):
        game, out = _game(directory, ["5", "4"])
        game.run()
        text = out.getvalue()
        assert "(Dev)" not in text
        assert "Invalid choice." in text

    def test_end_of_input_saves(self, directory, store):
        game, out = _game(directory, ["1", "water", "fire"])
        assert game.run() == 0
        assert "steam" in json.loads(store.path_for("local").read_text(encoding="utf-8"))

    def test_save_failure_exit_code(self, steam_catalog, tmp_path):
        from progress_store import JsonProgressStore
        from session_service import SessionDirectory
        blocker = tmp_path / "blocked"
        blocker.write_text("", encoding="utf-8")
        game, out = _game(SessionDirectory(steam_catalog, JsonProgressStore(blocker)), ["4"])
        assert game.run() == 1
        assert "Failed to save progress" in out.getvalue()


class TestDevMode:
    def test_untried_listing(self, directory):
        game, out = _game(directory, ["5", "", "4"], dev_mode=True)
        game.run()
        text = out.getvalue()
        assert "5. 🔍 View Untried Combinations (Dev)" in text
        assert "Earth + Earth" in text
        assert "Fire + Water" not in text

    def test_recipe_creator_reloads_from_disk(self, directory, data_dir):
        game, out = _game(directory, ["6", "2", "4"], dev_mode=True, data_dir=data_dir, rng=random.Random(0))
        game.run()
        text = out.getvalue()
        assert "=== Recipe Creator Flow ===" in text
        assert "Remaining possible combinations:" in text
        # The shipped catalog replaced the tiny one.
        assert "hot-spring" in directory.catalog.elements

    def test_recipe_creator_reports_bad_data(self, directory, data_dir):
        (data_dir / "recipes.json").write_text("[]", encoding="utf-8")
        game, out = _game(directory, ["6", "", "4"], dev_mode=True, data_dir=data_dir)
        game.run()
        assert "Error reloading game state" in out.getvalue()

    def test_recipe_creator_when_nothing_left(self, directory, tmp_path, helpers):
        root = helpers.write_catalog_files(
            tmp_path / "tiny",
            elements={"water": {"name": "Water"}},
            recipes={},
            impossible=["water+water"],
        )
        game, out = _game(directory, ["6", "", "4"], dev_mode=True, data_dir=root)
        game.run()
        assert "No more combinations available to create recipes for!" in out.getvalue()


class TestEntryPoint:
    def test_validate_shipped_data(self, capsys):
        from main import main
        assert main(["--validate"]) == 0
        assert "Game data OK" in capsys.readouterr().out

    def test_validate_reports_problems(self, tmp_path, helpers, capsys):
        from main import main
        root = helpers.write_catalog_files(
            tmp_path / "data",
            elements=helpers.primordial_elements(),
            recipes={"water+fire": "steam"},
            impossible=[],
        )
        assert main(["--validate", "--data-dir", str(root)]) == 1
        assert "result is non-existent element: steam" in capsys.readouterr().out

    def test_missing_data_fails_fast(self, tmp_path, capsys):
        from main import main
        assert main(["--data-dir", str(tmp_path / "nowhere")]) == 1
        assert "Failed to load game state" in capsys.readouterr().out

    @pytest.mark.parametrize(
        "raw,expected",
        [(":8080", ("0.0.0.0", 8080)), ("127.0.0.1:9000", ("127.0.0.1", 9000)), ("8081", ("0.0.0.0", 8081))],
    )
    def test_parse_listen_address(self, raw, expected):
        from main import parse_listen_address
        assert parse_listen_address(raw) == expected

    @pytest.mark.parametrize("raw", ["localhost", ":0", ":99999"])
    def test_parse_listen_address_rejects(self, raw):
        from main import parse_listen_address
        with pytest.raises(ValueError):
            parse_listen_address(raw)

    def test_parse_listen_address_keeps_cause(self):
        from main import parse_listen_address
        with pytest.raises(ValueError, match="Invalid listen address") as excinfo:
            parse_listen_address("host:http")
        assert isinstance(excinfo.value.__cause__, ValueError)
