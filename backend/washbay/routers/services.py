# backend/washbay/routers/services.py
# API.md: read-only catalogue (POST/PATCH/DELETE not exposed)

from fastapi import APIRouter, HTTPException

from ..schemas.calendar import ServiceRead
from ..services.slots import SERVICES, get_capacity_config

router = APIRouter(prefix="/services", tags=["services"])


def _to_read(service) -> ServiceRead:
    limits = get_capacity_config().service_capacity_limits
    return ServiceRead(
        id=service.id,
        name=service.name,
        price=service.price,
        duration_minutes=service.duration_minutes,
        capacity_limit=limits.get(service.id, get_capacity_config().normal_capacity),
    )


@router.get("/", response_model=list[ServiceRead])
def list_services():
    return [_to_read(s) for s in SERVICES.values()]


@router.get("/{id}", response_model=ServiceRead)
def get_service(id: str):
    service = SERVICES.get(id)
    if not service:
        raise HTTPException(status_code=404, detail="Not found")
    return _to_read(service)
