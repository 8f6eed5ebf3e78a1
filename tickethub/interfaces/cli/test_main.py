"""Tests for the CLI commands."""

import asyncio
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tickethub import __version__
from tickethub.adapters.sqlite import SQLiteRepository
from tickethub.domains.search import Comment, Ticket

from .main import app

runner = CliRunner()


async def _seed(db_path: Path) -> None:
    repo = SQLiteRepository(db_path)
    await repo.initialize()
    try:
        await repo.save_ticket(
            Ticket(id=1, title="Login screen bug", body="Crash on submit", labels=["bug"])
        )
        await repo.save_ticket(Ticket(id=2, title="Payment timeout", status="closed"))
        await repo.save_comment(Comment(id=10, body="Login crash reproduced", target_id=1))
    finally:
        await repo.close()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "cli.db"
    result = runner.invoke(app, ["init", "--db", str(path)])
    assert result.exit_code == 0, result.output
    return path


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_init(db_path: Path) -> None:
    """Test init creates the database and reports empty indexes."""
    assert db_path.exists()

    result = runner.invoke(app, ["init", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "Initialization complete!" in result.output


def test_rebuild_then_search(db_path: Path) -> None:
    asyncio.run(_seed(db_path))

    result = runner.invoke(app, ["rebuild", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "2 tickets" in result.output
    assert "1 comments" in result.output

    result = runner.invoke(app, ["search", "payment", "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "Payment" in result.output
    assert "1 matches" in result.output


def test_search_no_results(db_path: Path) -> None:
    result = runner.invoke(app, ["search", "nothing", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "No results" in result.output
