"""Router combining all route modules."""

from fastapi import APIRouter

from busycal.api.routes import calendar, health, links

api_router = APIRouter()

# Health checks
api_router.include_router(health.router)

# Private link creation (rate limited)
api_router.include_router(links.router)

# Anonymized feed, served from the site root: /?cal=<token>
api_router.include_router(calendar.router)
