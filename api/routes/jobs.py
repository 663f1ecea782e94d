"""Scheduled job inspection and manual triggers"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from api.responses import success_response
from app.exceptions import NotFoundError
from domain.models import get_db_session
from services.menu_expiration_service import MenuExpirationService
from services.scheduler import scheduler

router = APIRouter(prefix="/jobs", tags=["Jobs"])
logger = logging.getLogger("calo.api.jobs")


@router.get("/status")
def job_status():
    return success_response(scheduler.get_status())


@router.get("/menu-stats")
def menu_stats(db: Session = Depends(get_db_session)):
    return success_response(
        {
            **MenuExpirationService.get_menu_stats(db),
            "expiring": MenuExpirationService.get_expiring_menus(db),
        }
    )


@router.post("/{name}/run")
async def run_job(name: str):
    """Run a job now, bypassing the recent-run guard."""
    if name not in scheduler.jobs:
        raise NotFoundError(f"Unknown job '{name}'", details={"jobs": sorted(scheduler.jobs)})
    logger.info("Manual run requested for job %s", name)
    result = await scheduler.run_job(name)
    return success_response(result)
