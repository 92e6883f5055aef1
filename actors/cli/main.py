"""Schemaward command-line actor implemented with Typer."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import typer
from sqlalchemy.exc import SQLAlchemyError

from packages.schemaward_core import bootstrap_schema, check_health, open_catalog
from packages.schemaward_shared.config import SchemawardSettings, load_settings
from packages.schemaward_shared.errors import (
    CatalogReadError,
    SchemawardError,
    StatementExecutionError,
    exception_to_error,
)
from packages.schemaward_shared.logging import configure_logging
from resources.substrates.postgres.errors import normalize_postgres_error
from services.schema.ddl import Privilege
from services.schema.domain_registry import get_domain_registry
from services.schema.role_policy import (
    build_role_lifecycle_service,
    build_role_policy_service,
)
from services.schema.table_settings import (
    ColumnToggleOverride,
    TableRef,
    TableSettingsOverride,
    build_table_settings_service,
)

SUCCESS_EXIT_CODE = 0
DOMAIN_ERROR_EXIT_CODE = 3
CATALOG_ERROR_EXIT_CODE = 4

# Failures of the database itself rather than of the requested change.
_CATALOG_ERRORS = (CatalogReadError, StatementExecutionError, SQLAlchemyError, OSError)


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options propagated to every command."""

    config_path: Path | None
    as_json: bool
    log_level: str | None


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Path):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _serialize(
            {item.name: getattr(value, item.name) for item in dataclasses.fields(value)}
        )
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_serialize(item) for item in value]
        return sorted(items) if isinstance(value, (set, frozenset)) else items
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    return str(value)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""

    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    if isinstance(data, (dict, list)):
        typer.echo(json.dumps(data, indent=2, sort_keys=True))
        return
    typer.echo("ok" if data is None else str(data))


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render engine and connection errors to stderr."""

    if as_json:
        if isinstance(exc, SQLAlchemyError):
            detail = normalize_postgres_error(exc)
        else:
            detail = exception_to_error(exc)
        payload = {"error": _serialize(detail)}
        typer.echo(json.dumps(payload, sort_keys=True), err=True)
        return
    typer.echo(f"error: {exc}", err=True)


def _load(cfg: CliConfig) -> SchemawardSettings:
    """Load settings and configure logging for one command."""
    settings = load_settings(config_path=cfg.config_path)
    configure_logging(
        level=cfg.log_level or settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )
    return settings


def _run_command(cfg: CliConfig, invoke: Callable[[SchemawardSettings], Any]) -> None:
    """Execute one operation and map outputs/errors to process semantics."""
    try:
        result = invoke(_load(cfg))
    except _CATALOG_ERRORS as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=CATALOG_ERROR_EXIT_CODE) from exc
    except (SchemawardError, ValueError) as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=DOMAIN_ERROR_EXIT_CODE) from exc

    _emit_output(result, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _run_in_catalog(cfg: CliConfig, invoke: Callable[..., Any]) -> None:
    """Run ``invoke(settings, catalog)`` inside one database transaction."""

    def _call(settings: SchemawardSettings) -> Any:
        with open_catalog(settings) as catalog:
            return invoke(settings, catalog)

    _run_command(cfg, _call)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


def _toggle(value: bool | None) -> ColumnToggleOverride | None:
    return None if value is None else ColumnToggleOverride(add_to_table=value)


app = typer.Typer(no_args_is_help=True, help="Schemaward command-line interface")
role_app = typer.Typer(help="Role lifecycle commands")
domain_app = typer.Typer(help="Domain registry commands")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        envvar="SCHEMAWARD_CONFIG",
        help="YAML configuration file",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
    log_level: str | None = typer.Option(None, help="Override the configured log level"),
) -> None:
    """Store global options for all commands."""

    ctx.obj = CliConfig(config_path=config, as_json=as_json, log_level=log_level)


@app.command("bootstrap")
def bootstrap_command(ctx: typer.Context) -> None:
    """Provision shared schemas, domains, trigger function and roles."""
    cfg = _require_config(ctx)
    _run_in_catalog(
        cfg,
        lambda settings, catalog: bootstrap_schema(
            settings=settings, catalog=catalog, writer=catalog
        ),
    )


@app.command("apply-settings")
def apply_settings_command(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Target table as schema.table"),
    multi_tenant: bool | None = typer.Option(
        None, "--multi-tenant/--no-multi-tenant", help="Tenant persona column"
    ),
    multi_source: bool | None = typer.Option(
        None, "--multi-source/--no-multi-source", help="Source persona column"
    ),
    created_at: bool | None = typer.Option(
        None, "--created-at/--no-created-at", help="created_at column"
    ),
    last_updated_at: bool | None = typer.Option(
        None, "--last-updated-at/--no-last-updated-at", help="last_updated_at column"
    ),
) -> None:
    """Apply table settings; unset flags defer to configured settings."""
    cfg = _require_config(ctx)

    def _apply(settings: SchemawardSettings, catalog: Any) -> Any:
        override = TableSettingsOverride(
            multi_tenant=multi_tenant,
            multi_source=multi_source,
            created_at_column=_toggle(created_at),
            last_updated_at_column=_toggle(last_updated_at),
        )
        service = build_table_settings_service(
            settings=settings, catalog=catalog, writer=catalog
        )
        return service.apply_settings(table=TableRef.parse(table), override=override)

    _run_in_catalog(cfg, _apply)


@app.command("column-policy")
def column_policy_command(
    ctx: typer.Context,
    role: str = typer.Argument(..., help="Role receiving the grant"),
    table: str = typer.Argument(..., help="Target table as schema.table"),
    privilege: str = typer.Argument(..., help="Privilege, e.g. UPDATE"),
    exclude: list[str] | None = typer.Option(
        None, "--exclude", help="Column to leave out; repeatable"
    ),
) -> None:
    """Replace a role's column grant with every column but the excluded ones."""
    cfg = _require_config(ctx)

    def _apply(_settings: SchemawardSettings, catalog: Any) -> Any:
        target = TableRef.parse(table)
        service = build_role_policy_service(catalog=catalog, writer=catalog)
        return service.apply_column_policy(
            role=role,
            schema_name=target.schema_name,
            table=target.table,
            privilege=Privilege.parse(privilege),
            excluded_columns=tuple(exclude or ()),
        )

    _run_in_catalog(cfg, _apply)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Check that the configured database answers."""
    cfg = _require_config(ctx)
    try:
        ready = check_health(_load(cfg))
    except ValueError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=DOMAIN_ERROR_EXIT_CODE) from exc
    _emit_output({"ready": ready}, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE if ready else CATALOG_ERROR_EXIT_CODE)


@role_app.command("ensure")
def role_ensure_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Role name"),
    description: str = typer.Option(..., help="Role comment"),
    login: bool = typer.Option(True, "--login/--no-login", help="Configure login"),
) -> None:
    """Create a role with the restrictive baseline if absent."""
    cfg = _require_config(ctx)
    _run_in_catalog(
        cfg,
        lambda settings, catalog: build_role_lifecycle_service(
            settings=settings, catalog=catalog, writer=catalog
        ).ensure_role(name=name, description=description, configure_login=login),
    )


@role_app.command("login")
def role_login_command(
    ctx: typer.Context, name: str = typer.Argument(..., help="Role name")
) -> None:
    """Enable or remove login from the configured credential."""
    cfg = _require_config(ctx)
    _run_in_catalog(
        cfg,
        lambda settings, catalog: build_role_lifecycle_service(
            settings=settings, catalog=catalog, writer=catalog
        ).ensure_login(name=name),
    )


@domain_app.command("validate")
def domain_validate_command(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Qualified domain name, e.g. iso.alpha2"),
    value: str = typer.Argument(..., help="Value to check"),
) -> None:
    """Validate one value against a registered domain."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda _settings: get_domain_registry().validate(domain, value))


@domain_app.command("list")
def domain_list_command(ctx: typer.Context) -> None:
    """List registered domains."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda _settings: [
            {
                "name": item.qualified_name,
                "storage_type": item.storage_type,
                "description": item.description,
            }
            for item in get_domain_registry().list_domains()
        ],
    )


app.add_typer(role_app, name="role")
app.add_typer(domain_app, name="domain")


if __name__ == "__main__":
    app()
