import json
from pathlib import Path
from typing import Any, Optional

import typer
from dotenv import load_dotenv, set_key
from neo4j.exceptions import DriverError, Neo4jError

from .config import Neo4jSettingsModel, RepositorySettingsModel
from .domain.exceptions import QueryTemplateError, UnsupportedReturnShapeError
from .domain.interfaces import get_query_template
from .domain.services import (
    discover_repositories,
    interface_methods,
    placeholders,
    render,
    resolve_shape,
)
from .infrastructure.neo4j_utils import create_neo4j_driver, mask_uri

app = typer.Typer(add_completion=False, help="Declarative graph repository tools.")


def _check_connection(settings: Neo4jSettingsModel) -> bool:
    """Open and verify a driver for ``settings``, then close it again."""
    try:
        driver = create_neo4j_driver(settings)
    except (Neo4jError, DriverError, OSError) as exc:
        typer.secho(f"Cannot reach {mask_uri(settings.uri)}: {exc}", fg="red", err=True)
        return False
    driver.close()
    return True


def _split_packages(raw: str) -> list[str]:
    return [name.strip() for name in raw.split(",") if name.strip()]


def _parse_argument(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@app.command()
def setup(
    env_file: Path = typer.Option(Path(".env"), "--env-file", help="File to write settings to"),
) -> None:
    """Configure the Neo4j connection and the repository packages to scan."""
    if env_file.exists() and typer.confirm(f"Start from the values in {env_file}?", default=True):
        load_dotenv(env_file)
    # Only the process environment (and whatever was just loaded) supplies defaults.
    current = Neo4jSettingsModel(_env_file=None)
    current_packages = RepositorySettingsModel(_env_file=None).scan_packages

    connection = Neo4jSettingsModel(
        _env_file=None,
        uri=typer.prompt("Neo4j URI", default=current.uri),
        user=typer.prompt("Neo4j user", default=current.user),
        password=typer.prompt("Neo4j password", default=current.password, hide_input=True),
        database=typer.prompt("Neo4j database", default=current.database),
    )
    packages = _split_packages(
        typer.prompt(
            "Repository packages (comma separated, blank for none)",
            default=",".join(current_packages),
        )
    )

    typer.echo(f"Verifying {mask_uri(connection.uri)}...")
    if not _check_connection(connection):
        typer.secho("Settings not saved: Neo4j is not reachable with these details", fg="red")
        raise typer.Exit(1)

    if packages:
        report = discover_repositories(*packages)
        typer.echo(f"Found {len(report.descriptors)} repositories in {', '.join(packages)}")
        for error in report.errors:
            typer.secho(f"  {error}", fg="yellow")

    values = {
        "NEO4J_URI": connection.uri,
        "NEO4J_USER": connection.user,
        "NEO4J_PASSWORD": connection.password,
        "NEO4J_DATABASE": connection.database,
        "REPOSITORY_SCAN_PACKAGES": json.dumps(packages),
    }
    env_file.touch(mode=0o600, exist_ok=True)
    for key, value in values.items():
        set_key(str(env_file), key, value)
    env_file.chmod(0o600)
    typer.secho(f"Settings saved to {env_file}", fg="green")


@app.command()
def scan(
    packages: list[str] = typer.Argument(..., help="Packages to search"),
    fail_fast: bool = typer.Option(False, "--fail-fast", help="Stop at the first error"),
) -> None:
    """List the repository interfaces declared in PACKAGES."""
    report = discover_repositories(*packages, fail_fast=fail_fast)
    unsupported = 0
    for descriptor in report.descriptors:
        typer.secho(descriptor.describe(), bold=True)
        for name, func in sorted(interface_methods(descriptor.repository_type).items()):
            template = get_query_template(func)
            if template is None:
                typer.echo(f"  {name}: crud")
                continue
            try:
                shape, element_type, _ = resolve_shape(func)
            except UnsupportedReturnShapeError as exc:
                unsupported += 1
                typer.secho(f"  {name}: {exc}", fg="red")
                continue
            typer.echo(
                f"  {name}: query -> {shape.value} {element_type.__name__} "
                f"({len(placeholders(template))} placeholder(s))"
            )
    for error in report.errors:
        typer.secho(str(error), fg="red", err=True)
    typer.echo(f"{len(report.descriptors)} repositories, {len(report.errors)} errors")
    if report.errors or unsupported:
        raise typer.Exit(1)


@app.command("render")
def render_template(
    template: str = typer.Argument(..., help="Query template with ?N placeholders"),
    args: Optional[list[str]] = typer.Argument(
        None, help="Arguments; JSON values are decoded, anything else is a string"
    ),
) -> None:
    """Render TEMPLATE with ARGS as a literal query."""
    values = [_parse_argument(raw) for raw in args or []]
    try:
        typer.echo(render(template, values))
    except QueryTemplateError as exc:
        typer.secho(str(exc), fg="red", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
