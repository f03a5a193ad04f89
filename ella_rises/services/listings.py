"""
Listing descriptors for the participants, donations, milestones, surveys and events endpoints.
Sort names are the column names the dashboard has always sent.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import String, case, cast, func, or_
from sqlalchemy.orm import contains_eager

from ella_rises.models import (
    Donation,
    EventOccurrence,
    EventTemplate,
    Milestone,
    Participant,
    Registration,
    Survey,
)
from ella_rises.models.participant import ParticipantRole
from ella_rises.models.survey import NPSBucket
from ella_rises.services.list_query_engine import (
    AggregateSpec,
    FilterKind,
    FilterSpec,
    ListingDescriptor,
    SortSpec,
    age_on,
)

DATE_FORMAT = "%m/%d/%Y"
DATETIME_FORMAT = "%m/%d/%Y %I:%M %p"

PARTICIPANT_FULL_NAME = Participant.first_name + " " + Participant.last_name

ROLE_VALUES = frozenset(role.value for role in ParticipantRole)
NPS_BUCKET_VALUES = frozenset(bucket.value for bucket in NPSBucket)


def format_date(value: Optional[date]) -> Optional[str]:
    return value.strftime(DATE_FORMAT) if value else None


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(DATETIME_FORMAT) if value else None


def format_amount(value) -> Optional[str]:
    if value is None:
        return None
    return f"{Decimal(str(value)):.2f}"


def currency(value) -> float:
    return round(float(value), 2)


def participant_summary(participant: Participant) -> Dict[str, Any]:
    return {
        "participant_id": participant.id,
        "participant_email": participant.email,
        "participant_first_name": participant.first_name,
        "participant_last_name": participant.last_name,
        "participant_name": participant.full_name,
    }


def owned_by_caller(owner_column):
    """Visibility rule: non-admins only see rows whose owner is themselves."""
    def apply(query, context, now):
        return query.filter(owner_column == context.participant_id)
    return apply


# Participants

def project_participant(participant: Participant, today: date) -> Dict[str, Any]:
    return {
        "participant_id": participant.id,
        "email": participant.email,
        "first_name": participant.first_name,
        "last_name": participant.last_name,
        "full_name": participant.full_name,
        "date_of_birth": format_date(participant.date_of_birth),
        "age": age_on(participant.date_of_birth, today),
        "role": participant.role.value if participant.role else None,
        "is_visitor": participant.is_visitor,
        "phone": participant.phone,
        "city": participant.city,
        "state": participant.state,
        "zip_code": participant.zip_code,
        "school_or_employer": participant.school_or_employer,
        "field_of_interest": participant.field_of_interest,
        "account_created": format_datetime(participant.created_at),
    }


PARTICIPANTS = ListingDescriptor(
    name="participants",
    base_query=lambda db: db.query(Participant),
    primary_key=Participant.id,
    visibility=owned_by_caller(Participant.id),
    search_columns=(
        cast(Participant.id, String),
        Participant.first_name,
        Participant.last_name,
        PARTICIPANT_FULL_NAME,
        Participant.email,
        Participant.school_or_employer,
    ),
    filters=(
        FilterSpec("filterRole", Participant.role, FilterKind.EXACT, choices=ROLE_VALUES),
        FilterSpec("filterInterest", Participant.field_of_interest, FilterKind.EXACT),
        FilterSpec("filterCity", Participant.city, FilterKind.CONTAINS),
        FilterSpec("filterState", Participant.state, FilterKind.CONTAINS),
        FilterSpec("filterMinAge", Participant.date_of_birth, FilterKind.AGE_MIN),
        FilterSpec("filterMaxAge", Participant.date_of_birth, FilterKind.AGE_MAX),
        FilterSpec("filterStartDate", Participant.created_at, FilterKind.DATE_MIN, is_datetime=True),
        FilterSpec("filterEndDate", Participant.created_at, FilterKind.DATE_MAX, is_datetime=True),
    ),
    sort_columns={
        "ParticipantID": SortSpec(Participant.id),
        "ParticipantFirstName": SortSpec(Participant.first_name),
        "ParticipantLastName": SortSpec(Participant.last_name),
        "ParticipantEmail": SortSpec(Participant.email),
        "ParticipantSchoolOrEmployer": SortSpec(Participant.school_or_employer),
        "ParticipantRole": SortSpec(Participant.role),
        "ParticipantDOB": SortSpec(Participant.date_of_birth, "desc"),
        "AccountCreatedDate": SortSpec(Participant.created_at, "desc"),
    },
    default_sort="ParticipantID",
    projection=project_participant,
)


# Donations

def project_donation(donation: Donation, today: date) -> Dict[str, Any]:
    row = {
        "donation_id": donation.id,
        "donation_date": format_date(donation.donated_on),
        "donation_amount": format_amount(donation.amount),
    }
    row.update(participant_summary(donation.participant))
    return row


DONATIONS = ListingDescriptor(
    name="donations",
    base_query=lambda db: db.query(Donation).join(Donation.participant),
    primary_key=Donation.id,
    visibility=owned_by_caller(Donation.participant_id),
    search_columns=(
        cast(Donation.id, String),
        Participant.first_name,
        Participant.last_name,
        PARTICIPANT_FULL_NAME,
        Participant.email,
    ),
    filters=(
        FilterSpec("filterStartDate", Donation.donated_on, FilterKind.DATE_MIN),
        FilterSpec("filterEndDate", Donation.donated_on, FilterKind.DATE_MAX),
        FilterSpec("filterMinAmount", Donation.amount, FilterKind.NUMBER_MIN),
        FilterSpec("filterMaxAmount", Donation.amount, FilterKind.NUMBER_MAX),
    ),
    sort_columns={
        "DonationDate": SortSpec(Donation.donated_on, "desc"),
        "DonationAmount": SortSpec(Donation.amount, "desc"),
        "DonationID": SortSpec(Donation.id, "desc"),
        "ParticipantLastName": SortSpec(Participant.last_name),
        "ParticipantFirstName": SortSpec(Participant.first_name),
    },
    default_sort="DonationDate",
    projection=project_donation,
    aggregates={
        "total_amount": AggregateSpec(func.sum(Donation.amount), coerce=currency, default=0.0),
        "average_amount": AggregateSpec(func.avg(Donation.amount), coerce=currency, default=None),
    },
    load_options=(contains_eager(Donation.participant),),
)


# Milestones

def project_milestone(milestone: Milestone, today: date) -> Dict[str, Any]:
    row = {
        "milestone_id": milestone.id,
        "milestone_title": milestone.title,
        "milestone_category": milestone.category,
        "milestone_date": format_date(milestone.achieved_on),
    }
    row.update(participant_summary(milestone.participant))
    return row


MILESTONES = ListingDescriptor(
    name="milestones",
    base_query=lambda db: db.query(Milestone).join(Milestone.participant),
    primary_key=Milestone.id,
    visibility=owned_by_caller(Milestone.participant_id),
    search_columns=(
        Milestone.title,
        Milestone.category,
        Participant.first_name,
        Participant.last_name,
        PARTICIPANT_FULL_NAME,
        Participant.email,
    ),
    filters=(
        FilterSpec("filterStartDate", Milestone.achieved_on, FilterKind.DATE_MIN),
        FilterSpec("filterEndDate", Milestone.achieved_on, FilterKind.DATE_MAX),
        FilterSpec("filterCategory", Milestone.category, FilterKind.EXACT),
    ),
    sort_columns={
        "MilestoneDate": SortSpec(Milestone.achieved_on, "desc"),
        "MilestoneTitle": SortSpec(Milestone.title),
        "MilestoneCategory": SortSpec(Milestone.category),
        "MilestoneID": SortSpec(Milestone.id, "desc"),
        "ParticipantLastName": SortSpec(Participant.last_name),
    },
    default_sort="MilestoneDate",
    projection=project_milestone,
    load_options=(contains_eager(Milestone.participant),),
)


# Surveys

def bucket_count(bucket: NPSBucket):
    return func.sum(case((Survey.nps_bucket == bucket.value, 1), else_=0))


def project_survey(survey: Survey, today: date) -> Dict[str, Any]:
    registration = survey.registration
    occurrence = registration.occurrence
    row = {
        "survey_id": survey.id,
        "registration_id": registration.id,
        "satisfaction_score": survey.satisfaction_score,
        "usefulness_score": survey.usefulness_score,
        "instructor_score": survey.instructor_score,
        "recommendation_score": survey.recommendation_score,
        "overall_score": format_amount(survey.overall_score),
        "nps_bucket": survey.nps_bucket,
        "comments": survey.comments,
        "submitted_at": format_datetime(survey.submitted_at),
        "event_name": occurrence.template.name,
        "event_start": format_datetime(occurrence.starts_at),
    }
    row.update(participant_summary(registration.participant))
    return row


SURVEYS = ListingDescriptor(
    name="surveys",
    base_query=lambda db: (
        db.query(Survey)
        .join(Survey.registration)
        .join(Registration.participant)
        .join(Registration.occurrence)
        .join(EventOccurrence.template)
    ),
    primary_key=Survey.id,
    visibility=owned_by_caller(Registration.participant_id),
    search_columns=(
        EventTemplate.name,
        Survey.comments,
        Participant.first_name,
        Participant.last_name,
        PARTICIPANT_FULL_NAME,
        Participant.email,
    ),
    filters=(
        FilterSpec("filterNPS", Survey.nps_bucket, FilterKind.EXACT, choices=NPS_BUCKET_VALUES),
        FilterSpec("filterNPSBucket", Survey.nps_bucket, FilterKind.EXACT, choices=NPS_BUCKET_VALUES),
        FilterSpec("filterEventName", EventTemplate.name, FilterKind.EXACT),
        FilterSpec("filterStartDate", Survey.submitted_at, FilterKind.DATE_MIN, is_datetime=True),
        FilterSpec("filterEndDate", Survey.submitted_at, FilterKind.DATE_MAX, is_datetime=True),
        FilterSpec("filterMinScore", Survey.overall_score, FilterKind.NUMBER_MIN),
        FilterSpec("filterMaxScore", Survey.overall_score, FilterKind.NUMBER_MAX),
    ),
    sort_columns={
        "SurveySubmissionDate": SortSpec(Survey.submitted_at, "desc"),
        "SurveyOverallScore": SortSpec(Survey.overall_score, "desc"),
        "SurveyNPSBucket": SortSpec(Survey.nps_bucket),
        "SurveyRecommendationScore": SortSpec(Survey.recommendation_score, "desc"),
        "EventName": SortSpec(EventTemplate.name),
        "SurveyID": SortSpec(Survey.id, "desc"),
    },
    default_sort="SurveySubmissionDate",
    projection=project_survey,
    aggregates={
        "average_overall": AggregateSpec(func.avg(Survey.overall_score), coerce=currency, default=None),
        "promoters": AggregateSpec(bucket_count(NPSBucket.PROMOTER), coerce=int),
        "passives": AggregateSpec(bucket_count(NPSBucket.PASSIVE), coerce=int),
        "detractors": AggregateSpec(bucket_count(NPSBucket.DETRACTOR), coerce=int),
    },
    load_options=(
        contains_eager(Survey.registration).contains_eager(Registration.participant),
        contains_eager(Survey.registration)
        .contains_eager(Registration.occurrence)
        .contains_eager(EventOccurrence.template),
    ),
)


# Events (occurrences)

def upcoming_only(query, context, now):
    """Non-admins only see occurrences that have not finished yet."""
    cutoff = now.replace(tzinfo=None)
    return query.filter(
        or_(
            EventOccurrence.ends_at >= cutoff,
            (EventOccurrence.ends_at.is_(None)) & (EventOccurrence.starts_at >= cutoff),
        )
    )


def project_occurrence(occurrence: EventOccurrence, today: date) -> Dict[str, Any]:
    template = occurrence.template
    return {
        "occurrence_id": occurrence.id,
        "event_id": template.id,
        "event_name": template.name,
        "event_type": template.event_type,
        "event_description": template.description,
        "recurrence_pattern": template.recurrence_pattern,
        "default_capacity": template.default_capacity,
        "starts_at": format_datetime(occurrence.starts_at),
        "ends_at": format_datetime(occurrence.ends_at),
        "location": occurrence.location,
        "capacity": occurrence.effective_capacity,
        "registration_deadline": format_datetime(occurrence.registration_deadline),
    }


EVENTS = ListingDescriptor(
    name="events",
    base_query=lambda db: db.query(EventOccurrence).join(EventOccurrence.template),
    primary_key=EventOccurrence.id,
    visibility=upcoming_only,
    search_columns=(
        EventTemplate.name,
        EventTemplate.event_type,
        EventOccurrence.location,
    ),
    filters=(
        FilterSpec("filterEventType", EventTemplate.event_type, FilterKind.EXACT),
        FilterSpec("filterStartDate", EventOccurrence.starts_at, FilterKind.DATE_MIN, is_datetime=True),
        FilterSpec("filterEndDate", EventOccurrence.starts_at, FilterKind.DATE_MAX, is_datetime=True),
    ),
    sort_columns={
        "EventDateTimeStart": SortSpec(EventOccurrence.starts_at),
        "EventName": SortSpec(EventTemplate.name),
        "EventLocation": SortSpec(EventOccurrence.location),
        "OccurrenceID": SortSpec(EventOccurrence.id),
    },
    default_sort="EventDateTimeStart",
    projection=project_occurrence,
    load_options=(contains_eager(EventOccurrence.template),),
)
