"""Helpers shared by the listing endpoints."""
from fastapi import Request
from sqlalchemy.orm import Query, Session
from typing import Any, Dict

from ella_rises.core.clock import utcnow
from ella_rises.core.config import settings
from ella_rises.services.list_query_engine import (
    ListingDescriptor,
    ListParams,
    ListQueryEngine,
    RequestContext,
)

list_engine = ListQueryEngine(page_size=settings.LIST_PAGE_SIZE)


def run_listing(request: Request, db: Session, context: RequestContext,
                descriptor: ListingDescriptor) -> Dict[str, Any]:
    """Run a listing straight from the request's query string."""
    params = ListParams.from_query(request.query_params)
    return list_engine.run(db, descriptor, params, context).as_dict()


def filtered_listing_query(request: Request, db: Session, context: RequestContext,
                           descriptor: ListingDescriptor) -> Query:
    """The listing's visibility, search and filters without sorting or paging, for chart feeds."""
    params = ListParams.from_query(request.query_params)
    query, _ = list_engine.build_filtered_query(db, descriptor, params, context, utcnow())
    return query


def is_owner_or_admin(context: RequestContext, owner_id: int) -> bool:
    return context.is_admin or context.participant_id == owner_id
