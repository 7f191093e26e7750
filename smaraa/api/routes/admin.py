"""
Admin endpoints: tenant settings and the audit trail.
"""

from fastapi import APIRouter, Depends, Query

from smaraa.api.auth import verify_api_key
from smaraa.api.dependencies import get_audit_log, get_settings_service
from smaraa.api.models import (
    AuditEntryItem,
    AuditListResponse,
    ErrorResponse,
    SettingsResponse,
    SettingsUpdateRequest,
)
from smaraa.audit.log import AuditLog
from smaraa.audit.schemas import AuditAction
from smaraa.guilds.service import GuildSettingsService

router = APIRouter(prefix="/admin")


@router.post(
    "/settings",
    response_model=SettingsResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    },
    summary="Update tenant settings",
    description="Change role restrictions, visibility or retention. Omitted fields are kept.",
)
async def update_settings(
    body: SettingsUpdateRequest,
    api_key: str = Depends(verify_api_key),
    service: GuildSettingsService = Depends(get_settings_service),
) -> SettingsResponse:
    settings = await service.update(body.tenant_id, body.actor(), **body.changes())
    return SettingsResponse.from_settings(settings)


@router.get(
    "/settings/{tenant_id}",
    response_model=SettingsResponse,
    summary="Get tenant settings",
)
async def get_tenant_settings(
    tenant_id: str,
    api_key: str = Depends(verify_api_key),
    service: GuildSettingsService = Depends(get_settings_service),
) -> SettingsResponse:
    return SettingsResponse.from_settings(await service.get(tenant_id))


@router.get(
    "/audit/{tenant_id}",
    response_model=AuditListResponse,
    summary="Recent audit entries",
)
async def list_audit(
    tenant_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    action: AuditAction | None = Query(default=None),
    api_key: str = Depends(verify_api_key),
    audit: AuditLog = Depends(get_audit_log),
) -> AuditListResponse:
    entries = await audit.list_recent(tenant_id, limit=limit, action=action)
    return AuditListResponse(entries=[AuditEntryItem.from_entry(e) for e in entries])
