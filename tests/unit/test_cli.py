import os
from unittest.mock import Mock, patch

import pytest
from neo4j.exceptions import ServiceUnavailable
from typer.testing import CliRunner

from graph_repository import cli
from graph_repository.config import Neo4jSettingsModel

runner = CliRunner()

TRACKS = {
    "__init__.py": "",
    "models.py": """
        from pydantic import BaseModel


        class Track(BaseModel):
            id: str
            title: str
    """,
    "repositories.py": """
        from graph_repository.domain.interfaces import CrudRepository, query

        from .models import Track


        class Tracks(CrudRepository[Track, str]):
            @query("MATCH (t:Track) WHERE t.title = ?1 AND t.year = ?2 RETURN t")
            def find_release(self, title: str, year: int) -> list[Track]: ...
    """,
}

UNTYPED = """
    from graph_repository.domain.interfaces import CrudRepository


    class Untyped(CrudRepository):
        pass
"""

ODD_SHAPE = """
    from graph_repository.domain.interfaces import CrudRepository, query

    from .models import Track


    class Indexed(CrudRepository[Track, str]):
        @query("MATCH (t:Track) RETURN t")
        def by_title(self) -> dict[str, Track]: ...
"""


SETTINGS_VARS = (
    "NEO4J_URI",
    "NEO4J_USER",
    "NEO4J_PASSWORD",
    "NEO4J_DATABASE",
    "REPOSITORY_SCAN_PACKAGES",
)


@pytest.fixture
def mock_successful_connection(monkeypatch):
    """Fixture to mock successful connection check"""
    checked = []
    monkeypatch.setattr(cli, "_check_connection", lambda settings: checked.append(settings) or True)
    return checked


@pytest.fixture
def mock_failed_connection(monkeypatch):
    """Fixture to mock failed connection check"""
    monkeypatch.setattr(cli, "_check_connection", lambda settings: False)


@pytest.fixture
def setup_temp_dir(tmp_path, monkeypatch):
    """Fixture to run in a temporary directory without connection variables"""
    monkeypatch.chdir(tmp_path)
    with patch.dict(os.environ):
        for name in SETTINGS_VARS:
            os.environ.pop(name, None)
        yield tmp_path


class TestSetup:
    def test_writes_connection_and_packages(self, setup_temp_dir, mock_successful_connection):
        env_file = setup_temp_dir / ".env"

        result = runner.invoke(
            cli.app, ["setup"], input="bolt://local:7687\nneo4j\npass\nmovies\n\n"
        )

        assert result.exit_code == 0, result.output
        content = env_file.read_text()
        assert "NEO4J_URI='bolt://local:7687'" in content
        assert "NEO4J_PASSWORD='pass'" in content
        assert "NEO4J_DATABASE='movies'" in content
        assert "REPOSITORY_SCAN_PACKAGES='[]'" in content
        assert env_file.stat().st_mode & 0o777 == 0o600
        [checked] = mock_successful_connection
        assert (checked.uri, checked.user, checked.database) == ("bolt://local:7687", "neo4j", "movies")

    def test_reports_repositories_in_packages(
        self, setup_temp_dir, mock_successful_connection, package_factory
    ):
        name = package_factory({**TRACKS, "untyped.py": UNTYPED})

        result = runner.invoke(
            cli.app, ["setup"], input=f"bolt://local:7687\nneo4j\npass\nneo4j\n{name}\n"
        )

        assert result.exit_code == 0, result.output
        assert f"Found 1 repositories in {name}" in result.output
        assert "Untyped" in result.output
        assert f"REPOSITORY_SCAN_PACKAGES='[\"{name}\"]'" in (setup_temp_dir / ".env").read_text()

    def test_unreachable_database_saves_nothing(self, setup_temp_dir, mock_failed_connection):
        result = runner.invoke(cli.app, ["setup"], input="x\nx\nx\nx\n\n")

        assert result.exit_code == 1
        assert "Settings not saved" in result.output
        assert not (setup_temp_dir / ".env").exists()

    def test_starts_from_existing_env_file(self, setup_temp_dir, mock_successful_connection):
        env_file = setup_temp_dir / ".env"
        env_file.write_text(
            "NEO4J_URI=bolt://old:7687\nREPOSITORY_SCAN_PACKAGES='[\"app.repos\"]'\nEXISTING_VAR=value\n"
        )

        result = runner.invoke(
            cli.app, ["setup"], input="y\n\nneo4j\npassword\nneo4j\n\n"
        )

        assert result.exit_code == 0, result.output
        content = env_file.read_text()
        assert "NEO4J_URI='bolt://old:7687'" in content
        assert "EXISTING_VAR=value" in content
        assert "Found 0 repositories in app.repos" in result.output


class TestCheckConnection:
    def test_driver_is_closed_after_check(self, monkeypatch):
        driver = Mock()
        monkeypatch.setattr(cli, "create_neo4j_driver", lambda settings: driver)

        assert cli._check_connection(Neo4jSettingsModel(uri="bolt://h:7687")) is True
        driver.close.assert_called_once()

    def test_unreachable_service(self, monkeypatch):
        def unavailable(settings):
            raise ServiceUnavailable("connection refused")

        monkeypatch.setattr(cli, "create_neo4j_driver", unavailable)

        assert cli._check_connection(Neo4jSettingsModel(uri="bolt://u:secret@h:7687")) is False


class TestScan:
    def test_lists_repositories_and_routing(self, package_factory):
        name = package_factory(TRACKS)

        result = runner.invoke(cli.app, ["scan", name])

        assert result.exit_code == 0, result.output
        assert f"{name}.repositories.Tracks[Track, str]" in result.output
        assert "find_release: query -> collection Track (2 placeholder(s))" in result.output
        assert "get_by_id: crud" in result.output
        assert "1 repositories, 0 errors" in result.output

    def test_malformed_declaration_fails(self, package_factory):
        name = package_factory({**TRACKS, "untyped.py": UNTYPED})

        result = runner.invoke(cli.app, ["scan", name])

        assert result.exit_code == 1
        assert "Untyped" in result.output
        assert "1 repositories, 1 errors" in result.output

    def test_unsupported_shape_fails(self, package_factory):
        name = package_factory({**TRACKS, "indexed.py": ODD_SHAPE})

        result = runner.invoke(cli.app, ["scan", name])

        assert result.exit_code == 1
        assert "by_title: Unsupported return type" in result.output


class TestRender:
    def test_renders_literals(self):
        result = runner.invoke(
            cli.app,
            ["render", "MATCH (u:User) WHERE u.name = ?1 AND u.age > ?2 RETURN u", "O'Brien", "30"],
        )

        assert result.exit_code == 0
        assert result.output.strip() == (
            "MATCH (u:User) WHERE u.name = 'O\\'Brien' AND u.age > 30 RETURN u"
        )

    def test_json_booleans(self):
        result = runner.invoke(cli.app, ["render", "RETURN ?1", "true"])
        assert result.output.strip() == "RETURN true"

    def test_mismatch_exits_with_error(self):
        result = runner.invoke(cli.app, ["render", "RETURN ?1, ?2", "1"])

        assert result.exit_code == 1
        assert "Argument index out of bounds: 2" in result.output
