"""Retention sweep: expire archived messages past each tenant's horizon.

For every tenant with ``retention_days`` set:
1. Compute ``cutoff = now - retention_days``
2. Delete rows archived before the cutoff (each row removal is atomic)
3. Write one audit entry with the count removed, even when it is zero

A failure in one tenant is logged and recorded in the report; the sweep
carries on with the remaining tenants. Designed for external scheduling
(``smaraa sweep``) or for running in-process with ``run_forever``.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from smaraa.archive.schemas import ensure_utc
from smaraa.audit.log import SYSTEM_ACTOR, AuditLog
from smaraa.audit.schemas import AuditAction
from smaraa.errors import SmaraaError
from smaraa.guilds.repository import GuildSettingsRepository
from smaraa.observability.metrics import get_metrics
from smaraa.resilience.backoff import ExponentialBackoff
from smaraa.retention.config import RetentionConfig
from smaraa.search.cache import SearchResultCache
from smaraa.vectorstore.base import MessageVectorStore

logger = logging.getLogger(__name__)


@dataclass
class TenantSweepResult:
    """Outcome of sweeping one tenant."""

    tenant_id: str
    cutoff: datetime
    deleted: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SweepReport:
    """Summary of one retention sweep across all tenants."""

    started_at: datetime
    tenants: list[TenantSweepResult] = field(default_factory=list)
    index_maintained: bool = False
    elapsed_seconds: float = 0.0

    @property
    def total_deleted(self) -> int:
        return sum(t.deleted for t in self.tenants)

    @property
    def failed_tenants(self) -> list[str]:
        return [t.tenant_id for t in self.tenants if not t.ok]


class RetentionManager:
    """
    Runs retention sweeps.

    Usage:
        manager = RetentionManager(store, settings_repo, audit_log)
        report = await manager.sweep()
        print(report.total_deleted, report.failed_tenants)
    """

    def __init__(
        self,
        store: MessageVectorStore,
        settings_repo: GuildSettingsRepository,
        audit: AuditLog,
        config: RetentionConfig | None = None,
        result_cache: SearchResultCache | None = None,
    ):
        self._store = store
        self._settings = settings_repo
        self._audit = audit
        self._config = config or RetentionConfig()
        self._result_cache = result_cache

    async def sweep(self, now: datetime | None = None) -> SweepReport:
        """
        Sweep every tenant with a retention horizon.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            SweepReport with per-tenant counts and errors.

        Raises:
            StoreError: The tenant list itself could not be loaded
        """
        now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
        start = time.perf_counter()
        report = SweepReport(started_at=now)

        tenants = await self._settings.list_with_retention()
        logger.info("Retention sweep starting for %d tenant(s)", len(tenants))

        for settings in tenants:
            cutoff = now - timedelta(days=settings.retention_days)
            result = TenantSweepResult(tenant_id=settings.tenant_id, cutoff=cutoff)
            try:
                result.deleted = await self._store.delete_older_than(settings.tenant_id, cutoff)
                await self._audit.record(
                    settings.tenant_id,
                    SYSTEM_ACTOR,
                    AuditAction.RETENTION_SWEEP,
                    {
                        "retentionDays": settings.retention_days,
                        "cutoff": cutoff.isoformat(),
                        "deleted": result.deleted,
                    },
                )
            except Exception as e:
                logger.exception("Retention sweep failed for tenant %s", settings.tenant_id)
                result.error = str(e) or type(e).__name__

            if result.deleted and self._result_cache is not None:
                self._result_cache.invalidate_tenant(settings.tenant_id)
            report.tenants.append(result)

        if report.total_deleted >= self._config.reindex_threshold:
            try:
                await self._store.maintain_index(reindex=self._config.reindex_enabled)
                report.index_maintained = True
            except SmaraaError as e:
                logger.warning("Index maintenance after sweep failed: %s", e)

        report.elapsed_seconds = time.perf_counter() - start
        get_metrics().record_sweep(
            report.total_deleted, len(report.failed_tenants), report.elapsed_seconds
        )
        logger.info(
            "Retention sweep finished: %d deleted across %d tenant(s), %d failed in %.2fs",
            report.total_deleted,
            len(report.tenants),
            len(report.failed_tenants),
            report.elapsed_seconds,
        )
        return report

    async def run_forever(
        self,
        interval_seconds: float | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> None:
        """
        Sweep repeatedly until ``stop_event`` is set.

        Sweeps whose tenant list cannot be loaded back off exponentially
        instead of waiting the full interval.
        """
        interval = interval_seconds or self._config.interval_seconds
        stop_event = stop_event or asyncio.Event()
        backoff = ExponentialBackoff(
            base_delay=self._config.failure_backoff_base_seconds,
            max_delay=self._config.failure_backoff_max_seconds,
        )

        while not stop_event.is_set():
            try:
                await self.sweep()
                backoff.reset()
                delay = interval
            except SmaraaError as e:
                delay = backoff.next_delay()
                logger.error("Retention sweep failed, retrying in %.1fs: %s", delay, e)

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            except TimeoutError:
                pass

        logger.info("Retention loop stopped")
