import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lookout.dependencies import get_command_bus, get_query_bus
from lookout.core.cqrs.command_bus import CommandBus
from lookout.core.cqrs.query_bus import QueryBus
from lookout.domains.responses import operation_response
from lookout.models import MonitoredPaths, WriteAccessResult
from lookout.domains.file_lifecycle.commands import (
    RetryFileCommand,
    RenameFileCommand,
    DeleteFailedFileCommand,
    ExpandFilePrefixesCommand,
)
from lookout.domains.file_lifecycle.queries import (
    CheckWriteAccessQuery,
    PathCheckQuery,
    GetMonitoredPathsQuery,
)

files_router = APIRouter(
    prefix="/api/files",
    tags=["files"],
)


class ActorRequest(BaseModel):
    actor: str = Field(default="system", min_length=1)


class RenameRequest(ActorRequest):
    new_name: str = Field(..., min_length=1)


class PathCheckRequest(BaseModel):
    path: str


def _actor(payload: Optional[ActorRequest]) -> str:
    return payload.actor if payload else "system"


@files_router.get("/write-access", response_model=WriteAccessResult)
async def check_write_access(
    query_bus: QueryBus = Depends(get_query_bus)
) -> WriteAccessResult:
    try:
        result = await query_bus.execute(CheckWriteAccessQuery())
        logging.info(f"API: Write access check - can_write: {result.can_write}")
        return result
    except Exception as e:
        logging.error(f"API: Unexpected error during write access check: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@files_router.get("/paths", response_model=MonitoredPaths)
async def get_monitored_paths(
    query_bus: QueryBus = Depends(get_query_bus)
) -> MonitoredPaths:
    try:
        return await query_bus.execute(GetMonitoredPathsQuery())
    except Exception as e:
        logging.error(f"API: Error getting monitored paths: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@files_router.post("/test-path")
async def test_path(
    payload: PathCheckRequest,
    query_bus: QueryBus = Depends(get_query_bus)
) -> JSONResponse:
    try:
        result = await query_bus.execute(PathCheckQuery(path=payload.path.strip()))
    except Exception as e:
        logging.error(f"API: Unexpected error testing path {payload.path}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return operation_response(result)


@files_router.post("/{name}/retry")
async def retry_file(
    name: str,
    payload: Optional[ActorRequest] = None,
    command_bus: CommandBus = Depends(get_command_bus)
) -> JSONResponse:
    result = await command_bus.execute(RetryFileCommand(name=name, actor=_actor(payload)))
    logging.info(f"API: Retry {name} - success: {result.success}")
    return operation_response(result)


@files_router.post("/{name}/rename")
async def rename_file(
    name: str,
    payload: RenameRequest,
    command_bus: CommandBus = Depends(get_command_bus)
) -> JSONResponse:
    command = RenameFileCommand(old_name=name, new_name=payload.new_name, actor=payload.actor)
    result = await command_bus.execute(command)
    logging.info(f"API: Rename {name} -> {payload.new_name} - success: {result.success}")
    return operation_response(result)


@files_router.delete("/{name}")
async def delete_failed_file(
    name: str,
    payload: Optional[ActorRequest] = None,
    command_bus: CommandBus = Depends(get_command_bus)
) -> JSONResponse:
    result = await command_bus.execute(DeleteFailedFileCommand(name=name, actor=_actor(payload)))
    logging.info(f"API: Delete {name} - success: {result.success}")
    return operation_response(result)


@files_router.post("/{name}/expand")
async def expand_file_prefixes(
    name: str,
    payload: Optional[ActorRequest] = None,
    command_bus: CommandBus = Depends(get_command_bus)
) -> JSONResponse:
    result = await command_bus.execute(ExpandFilePrefixesCommand(name=name, actor=_actor(payload)))
    logging.info(f"API: Expand {name} - success: {result.success}, count: {result.count}")
    return operation_response(result)
