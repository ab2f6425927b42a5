import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query as QueryParam, Response

from lookout.dependencies import get_query_bus
from lookout.core.cqrs.query_bus import QueryBus
from lookout.models import AuditEntry, utc_now
from lookout.domains.audit_trail.queries import ListAuditEntriesQuery, ExportAuditLogQuery

audit_router = APIRouter(
    prefix="/api/audit",
    tags=["audit"],
)


@audit_router.get("", response_model=List[AuditEntry])
async def list_audit_entries(
    actor: Optional[str] = None,
    limit: Optional[int] = QueryParam(default=None, ge=1),
    query_bus: QueryBus = Depends(get_query_bus)
) -> List[AuditEntry]:
    try:
        return await query_bus.execute(ListAuditEntriesQuery(actor=actor, limit=limit))
    except Exception as e:
        logging.error(f"API: Error listing audit entries: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@audit_router.get("/export")
async def export_audit_log(
    query_bus: QueryBus = Depends(get_query_bus)
) -> Response:
    try:
        content = await query_bus.execute(ExportAuditLogQuery())
    except Exception as e:
        logging.error(f"API: Error exporting audit log: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to export audit log: {str(e)}")

    filename = f"audit_log_{utc_now().strftime('%Y%m%d')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
