from __future__ import annotations

from pathlib import Path

from alembic.script import ScriptDirectory

from catalog_core.db import Base
from catalog_core.db.run_migrations import COMMANDS, MIGRATIONS_DIR, build_config


def _scripts() -> ScriptDirectory:
    return ScriptDirectory.from_config(build_config("postgresql://catalog@localhost/catalog"))


def test_single_head() -> None:
    scripts = _scripts()
    assert scripts.get_heads() == ["3c1d5e7a9b20"]
    assert scripts.get_revision("head").down_revision is None


def test_revision_creates_every_model_table() -> None:
    source = Path(_scripts().get_revision("head").path).read_text(encoding="utf-8")
    missing = [name for name in Base.metadata.tables if f'"{name}"' not in source]
    assert missing == []


def test_config_points_at_package_migrations() -> None:
    cfg = build_config("postgresql://catalog@localhost/catalog")
    assert Path(cfg.get_main_option("script_location")) == MIGRATIONS_DIR
    assert {"upgrade", "downgrade", "seed"} <= set(COMMANDS)
