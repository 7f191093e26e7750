"""Retention sweeps."""

from smaraa.retention.config import RetentionConfig
from smaraa.retention.manager import RetentionManager, SweepReport, TenantSweepResult

__all__ = ["RetentionConfig", "RetentionManager", "SweepReport", "TenantSweepResult"]
