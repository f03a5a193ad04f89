from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import logging
from ella_rises.api.deps import run_listing
from ella_rises.api.v1.endpoints.auth import get_current_user, get_request_context, require_admin
from ella_rises.database.database import get_db
from ella_rises.models import Participant, Registration, Survey
from ella_rises.models.registration import RegistrationStatus
from ella_rises.schemas.listing import ListResponse
from ella_rises.schemas.survey import SurveyCreate, SurveyResponse, SurveyUpdate
from ella_rises.services.list_query_engine import RequestContext
from ella_rises.services.listings import SURVEYS
from ella_rises.services.survey_scoring import apply_scores

logger = logging.getLogger(__name__)
router = APIRouter()


def get_survey_or_404(db: Session, survey_id: int) -> Survey:
    survey = db.query(Survey).filter(Survey.id == survey_id).first()
    if not survey:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Survey not found"
        )
    return survey


def score_or_422(survey: Survey, scores):
    try:
        apply_scores(
            survey,
            scores.satisfaction_score,
            scores.usefulness_score,
            scores.instructor_score,
            scores.recommendation_score,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )


@router.get("/", response_model=ListResponse)
async def list_surveys(
    request: Request,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context)
):
    """Survey responses with average score and NPS bucket counts over the filtered set."""
    return run_listing(request, db, context, SURVEYS)


@router.post("/", response_model=SurveyResponse, status_code=status.HTTP_201_CREATED)
async def create_survey(
    survey: SurveyCreate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    """Submit the survey for a registration. One survey per registration."""
    registration = db.query(Registration).filter(Registration.id == survey.registration_id).first()
    if not registration:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Registration not found"
        )
    if not (current_user.is_admin or registration.participant_id == current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    if registration.status == RegistrationStatus.CANCELLED.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot submit a survey for a cancelled registration"
        )
    if db.query(Survey).filter(Survey.registration_id == registration.id).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A survey has already been submitted for this registration"
        )

    db_survey = Survey(registration_id=registration.id, comments=survey.comments)
    score_or_422(db_survey, survey)
    db.add(db_survey)
    db.commit()
    db.refresh(db_survey)

    logger.info(f"Survey {db_survey.id} submitted for registration {registration.id} ({db_survey.nps_bucket})")
    return db_survey


@router.put("/{survey_id}", response_model=SurveyResponse)
async def update_survey(
    survey_id: int,
    survey_update: SurveyUpdate,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(get_current_user)
):
    """Replace a survey's scores; overall score and NPS bucket are recomputed."""
    survey = get_survey_or_404(db, survey_id)
    if not (current_user.is_admin or survey.registration.participant_id == current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    score_or_422(survey, survey_update)
    if "comments" in survey_update.model_fields_set:
        survey.comments = survey_update.comments

    db.commit()
    db.refresh(survey)

    logger.info(f"Survey updated: {survey.id} by: {current_user.email}")
    return survey


@router.delete("/{survey_id}")
async def delete_survey(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: Participant = Depends(require_admin)
):
    """Delete a survey (Admin only)."""
    survey = get_survey_or_404(db, survey_id)
    db.delete(survey)
    db.commit()

    logger.info(f"Survey deleted: {survey_id} by admin: {current_user.email}")
    return {"message": "Survey deleted successfully"}
