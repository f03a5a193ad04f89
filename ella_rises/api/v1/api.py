from fastapi import APIRouter
from ella_rises.api.v1.endpoints import auth, participants, donations, milestones, surveys, events, registrations, stats

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(participants.router, prefix="/participants", tags=["participants"])
api_router.include_router(donations.router, prefix="/donations", tags=["donations"])
api_router.include_router(milestones.router, prefix="/milestones", tags=["milestones"])
api_router.include_router(surveys.router, prefix="/surveys", tags=["surveys"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(registrations.router, prefix="/registrations", tags=["registrations"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
