"""Storage layer: connection pool, retry policy and schema bootstrap."""

from smaraa.storage.database import Database
from smaraa.storage.schema import create_tables, render_schema

__all__ = ["Database", "create_tables", "render_schema"]
