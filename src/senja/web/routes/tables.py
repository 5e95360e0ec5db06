"""Record table endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from senja.core.engine import Engine, get_engine
from senja.core.errors import UnknownTableError
from senja.core.table import Table
from senja.web.schemas import (
    BulkImportRequest,
    BulkImportResponse,
    RecordListResponse,
)

router = APIRouter(prefix="/api", tags=["tables"])


def _get_table(engine: Engine, table: str) -> Table[Any]:
    """Resolve a table name or answer 404."""
    try:
        return engine.table(table)
    except UnknownTableError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e


@router.get("/tables/{table}", response_model=RecordListResponse)
async def list_records(table: str, engine: Engine = Depends(get_engine)) -> RecordListResponse:
    """List the cached contents of a table."""
    records = _get_table(engine, table).all()
    return RecordListResponse(table=table, records=records, count=len(records))


@router.get("/tables/{table}/{record_id}")
async def get_record(
    table: str, record_id: str, engine: Engine = Depends(get_engine)
) -> dict[str, Any]:
    """Get one record by id."""
    record = _get_table(engine, table).get(record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Record '{record_id}' not found in {table}",
        )
    return dict(record)


@router.post("/tables/{table}", status_code=status.HTTP_201_CREATED)
async def save_record(
    table: str, record: dict[str, Any], engine: Engine = Depends(get_engine)
) -> dict[str, Any]:
    """Create or replace a record. Remote sync happens in the background."""
    return dict(_get_table(engine, table).save(record))


@router.delete("/tables/{table}/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    table: str, record_id: str, engine: Engine = Depends(get_engine)
) -> Response:
    """Delete a record. Deleting an unknown id succeeds."""
    _get_table(engine, table).delete(record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/students/import",
    response_model=BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_students(
    body: BulkImportRequest, engine: Engine = Depends(get_engine)
) -> BulkImportResponse:
    """Append many students in one write."""
    imported = engine.students.bulk_import(body.records)
    return BulkImportResponse(records=[dict(r) for r in imported], count=len(imported))
