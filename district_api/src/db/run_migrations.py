"""
Programmatic Alembic migration runner.

Runs migrations without an alembic.ini by pointing the script location at
this package's migrations directory.

Usage examples:
    python -m src.db.run_migrations upgrade head
    python -m src.db.run_migrations downgrade -1
    python -m src.db.run_migrations history
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List

from alembic import command
from alembic.config import Config

from src.db.config import get_settings

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def _build_config() -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # Offline mode reads this; env.py builds its own async URL for online runs.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url)
    return cfg


_COMMANDS: Dict[str, Callable[..., None]] = {
    "upgrade": lambda cfg, *a: command.upgrade(cfg, *(a or ("head",))),
    "downgrade": lambda cfg, *a: command.downgrade(cfg, *(a or ("-1",))),
    "history": command.history,
    "current": command.current,
    "heads": command.heads,
    "stamp": lambda cfg, *a: command.stamp(cfg, *(a or ("head",))),
}


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run an Alembic command with programmatic configuration."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cmd, other = args[0], args[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        print(f"Unsupported Alembic command: {cmd}")
        sys.exit(2)
    handler(_build_config(), *other)


if __name__ == "__main__":
    main()
