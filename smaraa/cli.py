"""
Command-line interface for smaraa.

Provides commands to run the API, initialize the database, run retention
sweeps and inspect the audit trail.

Usage:
    smaraa serve            # Run the HTTP API
    smaraa init-db          # Create tables and indexes
    smaraa health           # Check store and cache reachability
    smaraa sweep            # Run one retention sweep
    smaraa sweep --loop     # Sweep on an interval until interrupted
    smaraa audit TENANT_ID  # Show recent audit entries
"""

import asyncio
import signal
import sys

import click

from smaraa.config.settings import get_settings
from smaraa.errors import RetentionSweepPartialFailure
from smaraa.observability.logging import setup_logging
from smaraa.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Smaraa - semantic chat archive and retrieval."""
    if debug:
        import os

        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the archive API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    # Start metrics server on separate port
    get_metrics().start_server(port=metrics_port)

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "smaraa.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from smaraa.embedding.config import EmbeddingConfig
    from smaraa.storage.database import Database
    from smaraa.storage.schema import create_tables

    async def run():
        db = Database()
        await db.connect()

        try:
            dimensions = EmbeddingConfig().dimensions
            await create_tables(db, dimensions)
            pgvector = await db.check_pgvector_extension()

            click.echo(f"Database initialized successfully (embedding dimension {dimensions})")
            if not pgvector:
                click.echo(click.style("Warning: pgvector extension not found", fg="yellow"))
        finally:
            await db.close()

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check health of the store and the embedding cache."""
    import structlog

    logger = structlog.get_logger()

    async def check():
        results: dict[str, bool] = {}

        # Check PostgreSQL
        try:
            from smaraa.storage.database import Database

            db = Database()
            await db.connect()
            results["postgres"] = await db.health_check()
            results["pgvector"] = await db.check_pgvector_extension()
            await db.close()
        except Exception as e:
            results["postgres"] = False
            results["pgvector"] = False
            logger.error("Postgres health check failed", error=str(e))

        # Check Redis when it backs the embedding cache
        from smaraa.embedding.config import EmbeddingConfig

        if EmbeddingConfig().cache_backend == "redis":
            try:
                import redis.asyncio as aioredis

                client = aioredis.from_url(str(get_settings().redis_url))
                results["redis"] = bool(await client.ping())
                await client.aclose()
            except Exception as e:
                results["redis"] = False
                logger.error("Redis health check failed", error=str(e))

        # Print results
        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        all_healthy = True
        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))
            if not status:
                all_healthy = False

        click.echo("-" * 40)

        if all_healthy:
            click.echo(click.style("All core services healthy!", fg="green"))
            sys.exit(0)
        else:
            click.echo(click.style("Some services unhealthy!", fg="red"))
            sys.exit(1)

    asyncio.run(check())


@main.command()
@click.option("--loop", "loop_forever", is_flag=True, help="Keep sweeping on an interval")
@click.option("--interval", default=None, type=float, help="Seconds between sweeps (with --loop)")
def sweep(loop_forever: bool, interval: float | None) -> None:
    """Delete archived messages past each tenant's retention horizon.

    Exits non-zero when any tenant's sweep failed.

    Example:
        smaraa sweep                        # One sweep, e.g. from cron
        smaraa sweep --loop --interval 900  # Every 15 minutes
    """
    from smaraa.audit.log import AuditLog
    from smaraa.guilds.repository import GuildSettingsRepository
    from smaraa.retention.manager import RetentionManager
    from smaraa.storage.database import Database
    from smaraa.vectorstore.pgvector_store import PgVectorStore

    async def run():
        db = Database()
        await db.connect()

        try:
            manager = RetentionManager(
                store=PgVectorStore(db),
                settings_repo=GuildSettingsRepository(db),
                audit=AuditLog(db),
            )

            if loop_forever:
                stop_event = asyncio.Event()
                loop = asyncio.get_running_loop()
                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(sig, stop_event.set)
                click.echo("Retention loop running (Ctrl+C to stop)")
                await manager.run_forever(interval, stop_event)
                return

            report = await manager.sweep()

            click.echo(f"\nRetention Sweep ({report.started_at.isoformat()}):")
            click.echo(f"  Tenants swept:    {len(report.tenants)}")
            click.echo(f"  Rows deleted:     {report.total_deleted}")
            click.echo(f"  Index maintained: {report.index_maintained}")
            click.echo(f"  Elapsed:          {report.elapsed_seconds:.2f}s")

            for tenant in report.tenants:
                if tenant.ok:
                    click.echo(f"  - {tenant.tenant_id}: {tenant.deleted} deleted")
                else:
                    click.echo(click.style(f"  - {tenant.tenant_id}: {tenant.error}", fg="red"))

            if report.failed_tenants:
                raise RetentionSweepPartialFailure(report.failed_tenants)
        finally:
            await db.close()

    try:
        asyncio.run(run())
    except RetentionSweepPartialFailure as e:
        click.echo(click.style(str(e), fg="red"))
        sys.exit(1)


@main.command()
@click.argument("tenant_id")
@click.option("--limit", default=20, help="Entries to show")
@click.option(
    "--action",
    default=None,
    type=click.Choice(["archive", "search", "summarize", "settings-update", "retention-sweep"]),
    help="Only entries of this kind",
)
def audit(tenant_id: str, limit: int, action: str | None) -> None:
    """Show recent audit entries for a tenant."""
    from smaraa.audit.log import AuditLog
    from smaraa.audit.schemas import AuditAction
    from smaraa.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            entries = await AuditLog(db).list_recent(
                tenant_id,
                limit=limit,
                action=AuditAction(action) if action else None,
            )
        finally:
            await db.close()

        if not entries:
            click.echo(f"No audit entries for {tenant_id}")
            return

        click.echo(f"\nAudit trail for {tenant_id} (newest first):")
        for entry in entries:
            click.echo(
                f"  {entry.ts.isoformat()}  {entry.action.value:<16} "
                f"{entry.actor_id:<20} {entry.payload}"
            )

    asyncio.run(run())


if __name__ == "__main__":
    main()
