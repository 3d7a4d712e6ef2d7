# =============================================================================
# app/routers/imports.py - CSV Import Endpoints
# =============================================================================
# Validation and import of the two Arketa exports (client list + client
# attendance), plus the import audit log.
# All endpoints require authentication.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile
from starlette.concurrency import run_in_threadpool

from app.auth import AuthUser, get_current_user
from app.exceptions import ImportRejectedError
from core.models.imports import ImportResult, ValidateCsvRequest, ValidationResult
from core.services.import_service import ImportService
from core.services.validation_service import validate_csv_format

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/validate", response_model=ValidationResult)
async def validate_csv(
    request: ValidateCsvRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Validate client list and attendance CSV text without importing.

    Returns `valid=false` with up to 50 error messages when the files have
    problems, plus the parsed rows. Missing or unparseable content is a 400.
    """
    return await run_in_threadpool(
        validate_csv_format,
        request.client_list_content,
        request.client_attendance_content,
    )


@router.post("/arketa", response_model=ImportResult)
async def import_arketa_csv(
    client_list: Annotated[UploadFile | None, File(description="Arketa client list export")] = None,
    client_attendance: Annotated[UploadFile | None, File(description="Arketa client attendance export")] = None,
    user: AuthUser = Depends(get_current_user),
):
    """
    Import both Arketa exports.

    Pipeline: validate -> snapshot -> upsert customers and recalculate
    segments -> detect segment changes -> audit log.

    Error responses (400 / 500) carry the same body as a successful import,
    with `success=false` and the errors collected so far.
    """
    if client_list is None or client_attendance is None:
        result = ImportResult(errors=["Both client_list and client_attendance CSV files are required"])
        raise ImportRejectedError(result, result.errors[0])

    list_bytes = await client_list.read()
    attendance_bytes = await client_attendance.read()

    logger.info(
        f"Import requested by {user.id}: {client_list.filename} ({len(list_bytes)} bytes), "
        f"{client_attendance.filename} ({len(attendance_bytes)} bytes)"
    )

    return await run_in_threadpool(
        ImportService.run_import,
        list_bytes,
        attendance_bytes,
        (client_list.filename or "client_list.csv", client_attendance.filename or "client_attendance.csv"),
    )


@router.get("")
async def list_imports(
    limit: Annotated[int, Query(ge=1, le=100, description="Number of imports to return")] = 20,
    user: AuthUser = Depends(get_current_user),
):
    """
    List recent imports, newest first.

    Each entry is a csv_imports audit row (status, counts, error details).
    """
    imports = await run_in_threadpool(ImportService.list_imports, limit=limit)
    return {"imports": imports, "count": len(imports)}
