"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from site_attendance.api.v1.endpoints import attendance, health, sessions, site_reports, sites, user_reports

api_router = APIRouter()

# Monthly matrix, day detail, CSV
api_router.include_router(attendance.router)

# Site × machine pivot
api_router.include_router(site_reports.router)

# Per-user day groups
api_router.include_router(user_reports.router)

# Masters and import
api_router.include_router(sites.router)
api_router.include_router(sessions.router)

api_router.include_router(health.router)
