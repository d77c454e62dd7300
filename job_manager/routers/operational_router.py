from fastapi import APIRouter, Depends

import job_manager.controllers.operational_controller as operational_controller
from job_manager.container import ServiceContainer
from job_manager.dependencies.services import get_container

router = APIRouter(tags=["operational"])


@router.get("/health")
async def health(container: ServiceContainer = Depends(get_container)):
    return operational_controller.health(container)


@router.get("/health/ready")
async def readiness(container: ServiceContainer = Depends(get_container)):
    return await operational_controller.readiness(container)


@router.get("/health/live")
async def liveness(container: ServiceContainer = Depends(get_container)):
    return operational_controller.liveness(container)


@router.get("/metrics")
async def metrics(container: ServiceContainer = Depends(get_container)):
    return await operational_controller.metrics(container)
