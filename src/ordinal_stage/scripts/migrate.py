# src/ordinal_stage/scripts/migrate.py
from __future__ import annotations

import os

from alembic import command
from alembic.config import Config

from ordinal_stage.core.settings import settings

_PROJECT_ROOT = os.path.join(os.path.dirname(__file__), "..", "..", "..")


def run_upgrade_head() -> None:
    """Apply every pending schema migration."""
    cfg = Config(os.path.join(_PROJECT_ROOT, "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    cfg.set_main_option("script_location", os.path.abspath(os.path.join(_PROJECT_ROOT, "migrations")))
    command.upgrade(cfg, "head")


if __name__ == "__main__":
    run_upgrade_head()
