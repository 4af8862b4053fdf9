"""
API v1 routes.
"""

from fastapi import APIRouter

from competency.api.v1 import cases, milestones, programs

router = APIRouter()

router.include_router(milestones.router, tags=["Milestones"])
router.include_router(programs.router, prefix="/programs", tags=["Programs"])
router.include_router(cases.router, prefix="/cases", tags=["Cases"])
