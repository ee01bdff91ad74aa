"""Command-line interface for RentBase.

This module provides the CLI commands for running and managing
the RentBase application.
"""

import asyncio
from typing import NoReturn

import click

from rentbase.core.config import Settings, get_settings
from rentbase.core.exceptions import RentBaseError
from rentbase.core.logging import configure_logging, get_logger


def _database(settings: Settings):
    """Build a guarded database manager outside the web application."""
    from rentbase.infrastructure.persistence.database import DatabaseManager
    from rentbase.infrastructure.persistence.tenant_guard import TenantGuard
    from rentbase.infrastructure.persistence.tenant_registry import default_tenant_registry

    guard = TenantGuard(default_tenant_registry(), settings.tenant_guard_mode)
    return DatabaseManager(settings, tenant_guard=guard)


@click.group()
@click.version_option(version="0.1.0", prog_name="RentBase")
def cli() -> None:
    """RentBase - multi-tenant rental management backend.

    Settings are read from RENTBASE_* environment variables and .env.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option("--workers", type=int, default=None, help="Number of worker processes (overrides config)")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development")
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the RentBase server."""
    import uvicorn

    settings = get_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "Starting RentBase server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "rentbase.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def init_db(force: bool) -> None:
    """Create all database tables.

    Use this only in development. In production, use migrations instead.
    """
    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo("ERROR: Running in production mode. Use migrations instead of init-db.", err=True)
        raise SystemExit(1)

    if not force:
        click.confirm("This will create all database tables. Continue?", abort=True, default=False)

    async def initialize() -> None:
        db = _database(settings)
        try:
            await db.create_tables()
            click.echo("Database initialized successfully.")
        finally:
            await db.disconnect()

    asyncio.run(initialize())


@cli.command()
def provision() -> None:
    """Seed the permission catalog and provision the system roles.

    Safe to run repeatedly: system roles end up with exactly the policy
    permission sets.
    """
    from rentbase.domain.services.role_provisioning_service import RolePermissionProvisioner

    settings = get_settings()
    configure_logging(settings)

    async def run() -> None:
        db = _database(settings)
        try:
            async with db.session() as session:
                await RolePermissionProvisioner(session).provision_system_roles()
            click.echo("Permission catalog and system roles provisioned.")
        finally:
            await db.disconnect()

    asyncio.run(run())


@cli.command()
@click.option("--email", type=str, default=None, help="Superadmin email (prompts if not provided)")
@click.option("--password", type=str, default=None, help="Superadmin password (prompts if not provided)")
@click.option("--force", is_flag=True, help="Skip confirmation prompt if superadmin already exists")
def create_superadmin(email: str | None, password: str | None, force: bool) -> None:
    """Create a platform superadmin user."""
    from rentbase.domain.services.superadmin_service import SuperadminService

    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)

    async def create() -> None:
        nonlocal email, password
        db = _database(settings)
        try:
            async with db.session() as session:
                has_superadmin = await SuperadminService.has_superadmin(session)
            if has_superadmin and not force:
                if not click.confirm(
                    "A superadmin already exists. Do you want to create another one?",
                    default=False,
                ):
                    click.echo("Cancelled.")
                    raise SystemExit(0)

            if email is None:
                email = click.prompt("Superadmin email", type=str)
            if password is None:
                password = click.prompt("Superadmin password", hide_input=True, confirmation_prompt=True)

            try:
                async with db.session() as session:
                    user_id = await SuperadminService.create_superadmin(email, password, session)
            except RentBaseError as e:
                click.echo(f"Error: {e}", err=True)
                logger.error("Superadmin creation failed", error=str(e))
                raise SystemExit(1)

            click.echo(f"\nSuperadmin created successfully!\n  User ID: {user_id}\n  Email:   {email}\n")
            logger.info("Superadmin created via CLI", user_id=user_id)
        finally:
            await db.disconnect()

    asyncio.run(create())


@cli.command()
@click.option("--name", required=True, help="Tenant display name")
@click.option("--owner-email", required=True, help="Email of the tenant owner")
@click.option("--owner-password", default=None, help="Owner password (prompts if not provided)")
@click.option("--slug", default=None, help="Tenant slug (generated from the name if omitted)")
@click.option("--plan", default="free", show_default=True)
def create_tenant(
    name: str, owner_email: str, owner_password: str | None, slug: str | None, plan: str
) -> None:
    """Create a tenant with its principal business unit and owner."""
    from rentbase.core.context import SYSTEM_USER_ID, RequestContext, context_scope
    from rentbase.domain.services.tenant_service import TenantService
    from rentbase.infrastructure.notifications import build_notifier

    settings = get_settings()
    configure_logging(settings)

    if owner_password is None:
        owner_password = click.prompt("Owner password", hide_input=True, confirmation_prompt=True)

    async def create() -> None:
        db = _database(settings)
        operator = RequestContext(user_id=SYSTEM_USER_ID, is_superadmin=True, is_system=True)
        try:
            with context_scope(operator):
                async with db.session() as session:
                    service = TenantService(session, notifier=build_notifier(settings))
                    tenant, business_unit, owner = await service.create_tenant(
                        name, owner_email, owner_password, slug=slug, plan=plan
                    )
        except RentBaseError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)
        finally:
            await db.disconnect()

        click.echo(
            f"\nTenant created successfully!\n"
            f"  Tenant ID:        {tenant.id}\n"
            f"  Slug:             {tenant.slug}\n"
            f"  Business unit ID: {business_unit.id}\n"
            f"  Owner ID:         {owner.id}\n"
        )

    asyncio.run(create())


@cli.command()
def info() -> None:
    """Display RentBase configuration."""
    settings = get_settings()

    click.echo(f"""
RentBase v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Database:
  URL:          {settings.database_url}
  Pool Size:    {settings.db_pool_size}

Tenancy:
  Guard mode:   {settings.tenant_guard_mode}
  Trusted:      {', '.join(settings.trusted_context_paths)}
  Cache TTL:    {settings.permission_cache_ttl_seconds}s

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    Called when the `rentbase` command is run or when using
    `python -m rentbase`.
    """
    cli()


if __name__ == "__main__":
    main()
