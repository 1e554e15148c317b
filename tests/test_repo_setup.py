# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0", "pydantic>=2.0"]
# ///
"""Tests for the project layout.

Validates:
  1. Runnable modules carry PEP 723 inline metadata declaring their dependencies
  2. Every top-level module is listed for installation in pyproject.toml
  3. Shipped data files load into their models
"""

import re
import sys
import tomllib
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

PROJECT_ROOT = Path(__file__).resolve().parent.parent

PEP723_BLOCK = re.compile(r"\A# /// script\s*\n((?:#[^\n]*\n)*?)# ///", re.MULTILINE)

# config.py is only ever imported, so it carries no script block
SCRIPT_MODULES = sorted(
    p for p in PROJECT_ROOT.glob("*.py") if p.name != "config.py"
)


def _block(path: Path) -> str | None:
    m = PEP723_BLOCK.search(path.read_text(encoding="utf-8"))
    return m.group(1) if m else None


class TestScriptMetadata:
    @pytest.mark.parametrize("path", SCRIPT_MODULES, ids=lambda p: p.name)
    def test_has_block_at_start(self, path):
        block = _block(path)
        assert block is not None, f"{path.name} missing PEP 723 block on line 1"
        assert "requires-python" in block
        assert "dependencies" in block

    @pytest.mark.parametrize("path", SCRIPT_MODULES, ids=lambda p: p.name)
    def test_pydantic_declared_where_imported(self, path):
        text = path.read_text(encoding="utf-8")
        if re.search(r"^from pydantic import|^import pydantic", text, re.MULTILINE):
            assert "pydantic" in _block(path), f"{path.name} imports pydantic undeclared"

    def test_entry_point_declares_pydantic(self):
        assert "pydantic>=2.0" in _block(PROJECT_ROOT / "game.py")


class TestPackaging:
    def test_every_module_is_installed(self):
        with open(PROJECT_ROOT / "pyproject.toml", "rb") as f:
            pyproject = tomllib.load(f)
        listed = set(pyproject["tool"]["setuptools"]["py-modules"])
        on_disk = {p.stem for p in PROJECT_ROOT.glob("*.py")}
        assert listed == on_disk

    def test_runtime_dependencies(self):
        with open(PROJECT_ROOT / "pyproject.toml", "rb") as f:
            pyproject = tomllib.load(f)
        deps = pyproject["project"]["dependencies"]
        assert any(d.startswith("pydantic") for d in deps)
        assert any(d.startswith("pytest")
                   for d in pyproject["project"]["optional-dependencies"]["test"])


class TestDataFiles:
    def test_sample_rosters(self):
        from simulation import load_rosters, resolve_side

        registry = load_rosters()
        for team_id in registry.teams:
            side = resolve_side(registry, team_id)
            assert len(side.players) == 9

    def test_default_rules(self):
        from config import load_rule_config
        from models import RuleConfig

        assert load_rule_config(PROJECT_ROOT / "data" / "rules_default.json") == RuleConfig()
