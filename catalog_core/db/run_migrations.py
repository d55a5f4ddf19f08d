"""
Alembic runner for the catalog schema, configured in code (no alembic.ini).

Usage examples:
    python -m catalog_core.db.run_migrations upgrade head
    python -m catalog_core.db.run_migrations downgrade -1
    python -m catalog_core.db.run_migrations seed      # upgrade head, then load default dropdowns
    python -m catalog_core.db.run_migrations history
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


# PUBLIC_INTERFACE
def build_config(database_url: Optional[str] = None) -> Config:
    """
    Alembic Config pointing at catalog_core/db/migrations.

    database_url defaults to the driverless URL from the POSTGRES_* settings; it is
    only read in offline (--sql) mode, env.py connects through the async engine.
    """
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    if database_url is None:
        from catalog_core.db.config import get_settings

        database_url = get_settings().sync_database_url
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def _seed(cfg: Config, *args: str) -> None:
    from catalog_core.db.seed import seed_all

    command.upgrade(cfg, "head")
    asyncio.run(seed_all())


# command name -> (callable, default positional args)
COMMANDS: Dict[str, tuple[Callable[..., None], List[str]]] = {
    "upgrade": (command.upgrade, ["head"]),
    "downgrade": (command.downgrade, ["-1"]),
    "stamp": (command.stamp, ["head"]),
    "history": (command.history, []),
    "current": (command.current, []),
    "heads": (command.heads, []),
    "show": (command.show, ["head"]),
    "seed": (_seed, []),
}


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run one Alembic command, e.g. main(["upgrade", "head"])."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(f"Usage: python -m catalog_core.db.run_migrations <{'|'.join(COMMANDS)}> [args]")
        sys.exit(1)

    name, rest = args[0], args[1:]
    if name not in COMMANDS:
        print(f"Unsupported Alembic command: {name}")
        sys.exit(2)

    func, defaults = COMMANDS[name]
    logger.info("alembic %s %s", name, " ".join(rest or defaults))
    func(build_config(), *(rest or defaults))


if __name__ == "__main__":
    main()
