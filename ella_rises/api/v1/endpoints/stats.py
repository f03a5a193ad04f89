from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging
from ella_rises.api.deps import filtered_listing_query
from ella_rises.api.v1.endpoints.auth import get_request_context, require_admin
from ella_rises.database.database import get_db
from ella_rises.models import Participant
from ella_rises.services import dashboard_stats
from ella_rises.services.list_query_engine import RequestContext
from ella_rises.services.listings import DONATIONS

logger = logging.getLogger(__name__)
router = APIRouter()

# Dashboard chart feeds (Admin only)

@router.get("/participants-by-interest")
async def participants_by_interest(db: Session = Depends(get_db), current_user: Participant = Depends(require_admin)):
    return dashboard_stats.participants_by_interest(db)

@router.get("/participants-by-year")
async def participants_by_year(db: Session = Depends(get_db), current_user: Participant = Depends(require_admin)):
    return dashboard_stats.participants_by_year(db)

@router.get("/milestones-by-category")
async def milestones_by_category(db: Session = Depends(get_db), current_user: Participant = Depends(require_admin)):
    return dashboard_stats.milestones_by_category(db)

@router.get("/donations-by-month")
async def donations_by_month(
    request: Request,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin),
    context: RequestContext = Depends(get_request_context)
):
    """Monthly totals over the same search and filters as the donations listing."""
    donations = filtered_listing_query(request, db, context, DONATIONS)
    return dashboard_stats.donations_by_month(donations)

@router.get("/donations-total")
async def donations_total(db: Session = Depends(get_db), current_user: Participant = Depends(require_admin)):
    return dashboard_stats.donations_total(db)

@router.get("/surveys-nps")
async def surveys_nps(db: Session = Depends(get_db), current_user: Participant = Depends(require_admin)):
    return dashboard_stats.surveys_nps(db)
