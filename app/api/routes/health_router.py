from fastapi import APIRouter, Depends

from app.api.dependencies.services import get_health_service
from app.core.admission.gate import admission_gate
from app.core.api_response import response_empty
from app.services.health_service import HealthService

router = APIRouter()


@router.get(
    "/healthz",
    summary="存活探针",
    dependencies=[Depends(admission_gate("healthz"))],
)
async def health_check(health_service: HealthService = Depends(get_health_service)):
    await health_service.check()
    return response_empty(http_status=200, headers={"Connection": "close"})
