"""
Backup and export endpoints.
"""

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from fintrack.errors import FinTrackError
from fintrack.models.base import get_db
from fintrack.services.export_service import ExportService

router = APIRouter(tags=["Export"])


@router.get("/export/json")
def export_json(db: Session = Depends(get_db)):
    """Full backup of transactions, settlements and reference data."""
    return ExportService(db).export_json()


@router.get("/export/csv", response_class=PlainTextResponse)
def export_csv(db: Session = Depends(get_db)):
    return PlainTextResponse(
        ExportService(db).export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="transactions.csv"'},
    )


@router.post("/import/json")
def import_json(
    document: dict = Body(...),
    db: Session = Depends(get_db),
):
    """
    Restore a JSON backup.

    Existing transactions are replaced. Nothing is written
    unless the whole document imports cleanly.
    """
    service = ExportService(db)
    try:
        counts = service.import_json(document)
        db.commit()
        return {"imported": counts}
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))
