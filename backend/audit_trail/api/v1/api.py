from fastapi import APIRouter

from audit_trail.api.v1.endpoints import companies, orgs

api_router = APIRouter()

api_router.include_router(orgs.router, prefix="/orgs", tags=["orgs"])
api_router.include_router(companies.router, prefix="/companies", tags=["companies"])
