"""Smoke tests for the Alembic migration chain on SQLite."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

PROJECT_ROOT = Path(__file__).resolve().parents[3]


def make_config() -> Config:
    config = Config()
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return config


def test_upgrade_and_downgrade_use_database_url_env(tmp_path, monkeypatch) -> None:
    database_url = f"sqlite:///{(tmp_path / 'migrated.db').as_posix()}"
    monkeypatch.setenv("DATABASE_URL", database_url)
    config = make_config()

    command.upgrade(config, "head")

    engine = create_engine(database_url)
    inspector = inspect(engine)
    assert {"profiles", "usage_credits", "processing_job"}.issubset(inspector.get_table_names())
    index_names = {index["name"] for index in inspector.get_indexes("processing_job")}
    assert {"ix_processing_job_user_id", "ix_processing_job_user_created"}.issubset(index_names)

    command.downgrade(config, "base")

    assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    engine.dispose()
