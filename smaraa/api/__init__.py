"""
FastAPI archive service.

Provides a REST API for the archive core:
- POST /archive, /archive/batch - Idempotent message archiving
- POST /search - Semantic search with filters and cursors
- POST /summarize - Retrieval-augmented summaries with citations
- /admin/settings, /admin/audit - Tenant settings and audit trail
- GET /healthz - Service health check
"""

from smaraa.api.app import create_app

__all__ = ["create_app"]
