"""
Aggregates behind the admin dashboard charts.
Date bucketing happens in Python so results match on PostgreSQL and SQLite.
"""
import logging
from collections import Counter, OrderedDict, defaultdict
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ella_rises.models import (
    Donation,
    EventOccurrence,
    EventTemplate,
    Milestone,
    Participant,
    Registration,
    Survey,
)
from ella_rises.models.survey import NPSBucket
from ella_rises.services.survey_scoring import nps_score

logger = logging.getLogger(__name__)

UNSPECIFIED = "Unspecified"


def participants_by_interest(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(Participant.field_of_interest, func.count(Participant.id))
        .group_by(Participant.field_of_interest)
        .all()
    )
    result = [{"field_of_interest": interest or UNSPECIFIED, "count": count} for interest, count in rows]
    return sorted(result, key=lambda r: (-r["count"], r["field_of_interest"]))


def participants_by_year(db: Session) -> List[Dict[str, Any]]:
    years = Counter(
        created.year for (created,) in db.query(Participant.created_at).all() if created is not None
    )
    return [{"year": year, "count": years[year]} for year in sorted(years)]


def milestones_by_category(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(Milestone.category, func.count(Milestone.id))
        .group_by(Milestone.category)
        .all()
    )
    result = [{"category": category or UNSPECIFIED, "count": count} for category, count in rows]
    return sorted(result, key=lambda r: (-r["count"], r["category"]))


def donations_by_month(donations: Query) -> List[Dict[str, Any]]:
    """
    Monthly totals for dated donations, oldest month first.
    `donations` is the donations listing query with its search and filters applied.
    """
    rows = (
        donations.order_by(None)
        .with_entities(Donation.donated_on, Donation.amount)
        .filter(Donation.donated_on.isnot(None))
    )
    totals = defaultdict(Decimal)
    for donated_on, amount in rows:
        totals[donated_on.strftime("%Y-%m")] += Decimal(str(amount))
    return [{"month": month, "total": float(totals[month].quantize(Decimal("0.01")))} for month in sorted(totals)]


def donations_total(db: Session) -> Dict[str, Any]:
    total, count = db.query(func.sum(Donation.amount), func.count(Donation.id)).one()
    return {"total": round(float(total or 0), 2), "count": count}


def surveys_nps(db: Session) -> Dict[str, Any]:
    """NPS bucket counts per event (stacked bar data) plus the overall figure."""
    rows = (
        db.query(EventTemplate.name, Survey.nps_bucket, func.count(Survey.id))
        .join(Registration, Survey.registration_id == Registration.id)
        .join(EventOccurrence, Registration.occurrence_id == EventOccurrence.id)
        .join(EventTemplate, EventOccurrence.event_id == EventTemplate.id)
        .group_by(EventTemplate.name, Survey.nps_bucket)
        .all()
    )
    per_event = OrderedDict()
    overall = Counter()
    for event_name, bucket, count in sorted(rows, key=lambda r: r[0]):
        counts = per_event.setdefault(event_name, Counter())
        counts[bucket] += count
        overall[bucket] += count

    def summarize(counts: Counter) -> Dict[str, int]:
        promoters = counts[NPSBucket.PROMOTER.value]
        passives = counts[NPSBucket.PASSIVE.value]
        detractors = counts[NPSBucket.DETRACTOR.value]
        return {
            "promoters": promoters,
            "passives": passives,
            "detractors": detractors,
            "nps": nps_score(promoters, passives, detractors),
        }

    return {
        "events": [dict(event_name=name, **summarize(counts)) for name, counts in per_event.items()],
        "overall": summarize(overall),
    }
