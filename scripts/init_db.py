from __future__ import annotations

import argparse
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from luckydraw.db.engine import get_sessionmaker, make_engine
from luckydraw.workflows import load_draw_config, upcoming_schedule


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def main() -> None:
    """Migrate the database, make sure a draw configuration exists and report it."""
    parser = argparse.ArgumentParser(description=main.__doc__)
    parser.add_argument("--revision", default="head", help="Alembic target revision")
    args = parser.parse_args()

    upgrade_db(args.revision)
    engine = make_engine()
    print("Current tables:", ", ".join(sorted(inspect(engine).get_table_names())))

    with get_sessionmaker(engine).begin() as session:
        settings = load_draw_config(session)
        draw_at, check_at = upcoming_schedule(settings)
        print(f"Draw configuration version {settings.id}")
        print(f"Next draw: {draw_at.isoformat()} (preflight {check_at.isoformat()})")


if __name__ == "__main__":
    main()
