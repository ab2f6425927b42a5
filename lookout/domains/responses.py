"""
HTTP mapping for lifecycle results.

Failed operations still answer with the full OperationResult body, so a
client always sees ``error_kind`` (and ``count`` for partial expansions).
"""
from fastapi import status
from fastapi.responses import JSONResponse

from lookout.models import ErrorKind, OperationResult

ERROR_STATUS_CODES = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_EXPANDABLE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.CONFIGURATION: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.PARTIAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.IO_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(result: OperationResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    return ERROR_STATUS_CODES.get(result.error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def operation_response(result: OperationResult) -> JSONResponse:
    return JSONResponse(
        status_code=status_code_for(result),
        content=result.model_dump(mode="json"),
    )
