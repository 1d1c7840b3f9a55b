"""API router aggregator."""

from fastapi import APIRouter

from app.api.routes import feed, jobs, vehicles

api_router = APIRouter()
api_router.include_router(feed.router)
api_router.include_router(vehicles.router)
api_router.include_router(jobs.router)
