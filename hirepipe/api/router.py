from fastapi import APIRouter

from hirepipe.api.routes import assessments
from hirepipe.api.routes import candidate
from hirepipe.api.routes import jobs

api_router = APIRouter()
api_router.include_router(jobs.router)
api_router.include_router(assessments.router)
api_router.include_router(candidate.router)
