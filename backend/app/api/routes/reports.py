"""GET /api/v1/reports: per-role idea totals."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.models.engagement import ReportResponse
from backend.app.services.idea_repository import get_report

router = APIRouter()


@router.get("/api/v1/reports", response_model=ReportResponse)
def report(db: Session = Depends(get_db)) -> ReportResponse:
    return ReportResponse(**get_report(db))
