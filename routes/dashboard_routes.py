from fastapi import APIRouter
from fastapi.params import Depends
from sqlalchemy.orm import Session
from starlette import status

from database import get_db
from dependencies import get_current_user
from models.User import User
from schemas.ReportSchemas import DashboardStatistics
from services.report_services import ReportService

router = APIRouter()


@router.get("", status_code=status.HTTP_200_OK, response_model=DashboardStatistics)
def get_dashboard_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Current calendar month (WIB) against the previous one, plus trend, ranking and feed."""
    return ReportService(db, current_user.id).dashboard()
