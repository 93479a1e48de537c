import logging
from datetime import date, datetime, time, timedelta
from typing import Literal, Optional

from fastapi import APIRouter
from fastapi.params import Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from starlette import status
from starlette.exceptions import HTTPException

from database import get_db
from dependencies import get_current_user
from models.User import User
from schemas.ReportSchemas import CashFlowResponse, PeriodSummaryResponse
from services.export_services import CSV_MEDIA_TYPE, XLSX_MEDIA_TYPE, ExportService
from services.report_services import ReportService
from utils import get_jkt_now

logger = logging.getLogger(__name__)

router = APIRouter()

CSV_EXPORTS = {
    "monthly": ("laporan-bulanan", ExportService.monthly_csv),
    "products": ("profit-produk", ExportService.products_csv),
    "cashflow": ("cash-flow", ExportService.cashflow_csv),
    "all": ("export-semua-data", ExportService.all_csv),
}


def _day_range(from_date: Optional[date], to_date: Optional[date]):
    """Inclusive calendar dates to a half-open [start, end) datetime window."""
    start = datetime.combine(from_date, time.min) if from_date else None
    end = datetime.combine(to_date + timedelta(days=1), time.min) if to_date else None
    if start and end and start >= end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tanggal mulai harus sebelum tanggal akhir",
        )
    return start, end


@router.get("/summary", response_model=PeriodSummaryResponse)
def get_period_summary(
    from_date: Optional[date] = Query(None, description="Start date, defaults to the first day of this month"),
    to_date: Optional[date] = Query(None, description="End date (inclusive), defaults to today"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    today = get_jkt_now().date()
    if from_date is None:
        from_date = today.replace(day=1)
    if to_date is None:
        to_date = today

    start, end = _day_range(from_date, to_date)
    return ReportService(db, current_user.id).period_summary(start, end)


@router.get("/cash-flow", response_model=CashFlowResponse)
def get_cash_flow(
    from_date: Optional[date] = Query(None, description="Start date"),
    to_date: Optional[date] = Query(None, description="End date (inclusive)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    start, end = _day_range(from_date, to_date)
    return ReportService(db, current_user.id).cash_flow(start, end)


@router.get("/export/xlsx")
def export_xlsx(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    exporter = ExportService(db, current_user.id)
    filename = exporter.filename("export-semua-data", "xlsx")
    return StreamingResponse(
        exporter.all_xlsx(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/export/{kind}")
def export_csv(
    kind: Literal["monthly", "products", "cashflow", "all"],
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prefix, build = CSV_EXPORTS[kind]
    exporter = ExportService(db, current_user.id)
    content = build(exporter)
    filename = exporter.filename(prefix)
    logger.info("CSV export %s built for user %s", kind, current_user.id)

    return StreamingResponse(
        iter([content.encode("utf-8")]),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
