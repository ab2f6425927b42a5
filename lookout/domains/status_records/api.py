import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lookout.dependencies import get_command_bus, get_query_bus
from lookout.core.cqrs.command_bus import CommandBus
from lookout.core.cqrs.query_bus import QueryBus
from lookout.domains.responses import operation_response
from lookout.core.statistics import NO_PUBLISHED_FILES
from lookout.core.status_transfer import NOTHING_TO_EXPORT
from lookout.models import ExportResult, FileStatusRecord, utc_now
from lookout.domains.status_records.commands import (
    ClearAllFileStatusesCommand,
    PurgeStaleStatusesCommand,
    ImportFileStatusesCommand,
)
from lookout.domains.status_records.queries import (
    ListFileStatusesQuery,
    ExportFileStatusesQuery,
    GetStatisticsReportQuery,
)

statuses_router = APIRouter(
    prefix="/api/statuses",
    tags=["statuses"],
)

MEDIA_TYPES = {"csv": "text/csv", "json": "application/json"}


class ClearRequest(BaseModel):
    actor: str = Field(default="system", min_length=1)


class PurgeRequest(BaseModel):
    max_age_days: Optional[float] = Field(default=None, description="Defaults to the retention setting")
    actor: str = Field(default="system", min_length=1)


class ImportRequest(BaseModel):
    content: str
    actor: str = Field(default="system", min_length=1)


def _raise_for_export_error(result: ExportResult, empty_message: str) -> None:
    if result.error == empty_message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    if result.error:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)


def _attachment(content: str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@statuses_router.get("", response_model=List[FileStatusRecord], response_model_by_alias=True)
async def list_file_statuses(
    query_bus: QueryBus = Depends(get_query_bus)
) -> List[FileStatusRecord]:
    try:
        return await query_bus.execute(ListFileStatusesQuery())
    except Exception as e:
        logging.error(f"API: Error listing file statuses: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@statuses_router.delete("")
async def clear_all_file_statuses(
    payload: Optional[ClearRequest] = None,
    command_bus: CommandBus = Depends(get_command_bus)
) -> JSONResponse:
    actor = payload.actor if payload else "system"
    result = await command_bus.execute(ClearAllFileStatusesCommand(actor=actor))
    logging.info(f"API: Cleared file statuses - count: {result.count}")
    return operation_response(result)


@statuses_router.post("/purge")
async def purge_stale_statuses(
    payload: Optional[PurgeRequest] = None,
    command_bus: CommandBus = Depends(get_command_bus)
) -> JSONResponse:
    payload = payload or PurgeRequest()
    command = PurgeStaleStatusesCommand(max_age_days=payload.max_age_days, actor=payload.actor)
    result = await command_bus.execute(command)
    logging.info(f"API: Purged stale file statuses - count: {result.count}")
    return operation_response(result)


@statuses_router.get("/export")
async def export_file_statuses(
    format: Literal["csv", "json"] = "csv",
    actor: str = "system",
    query_bus: QueryBus = Depends(get_query_bus)
) -> Response:
    result = await query_bus.execute(ExportFileStatusesQuery(format=format, actor=actor))
    _raise_for_export_error(result, NOTHING_TO_EXPORT)

    filename = f"file_statuses_{utc_now().strftime('%Y%m%d')}.{format}"
    logging.info(f"API: Exported {result.count} file statuses as {format}")
    return _attachment(result.content, MEDIA_TYPES[format], filename)


@statuses_router.post("/import")
async def import_file_statuses(
    payload: ImportRequest,
    format: Literal["csv", "json"] = "csv",
    command_bus: CommandBus = Depends(get_command_bus)
) -> JSONResponse:
    command = ImportFileStatusesCommand(content=payload.content, format=format, actor=payload.actor)
    result = await command_bus.execute(command)
    status_code = status.HTTP_400_BAD_REQUEST if result.error else status.HTTP_200_OK
    logging.info(f"API: Import ({format}) - imported: {result.imported_count}, error: {result.error}")
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@statuses_router.get("/statistics")
async def get_statistics_report(
    actor: str = "system",
    query_bus: QueryBus = Depends(get_query_bus)
) -> Response:
    result = await query_bus.execute(GetStatisticsReportQuery(actor=actor))
    _raise_for_export_error(result, NO_PUBLISHED_FILES)

    filename = f"statistics_report_{utc_now().strftime('%Y%m%d')}.csv"
    return _attachment(result.content, "text/csv", filename)
