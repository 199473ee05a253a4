from typing import List

from fastapi import APIRouter

from ..schemas import ServiceRead

router = APIRouter(prefix="/services", tags=["services"])

SERVICES = (
    ServiceRead(id=1, name="Haircut", price=100),
    ServiceRead(id=2, name="Beard", price=200),
    ServiceRead(id=3, name="Complete", price=250),
)


@router.get("", response_model=List[ServiceRead])
async def list_services() -> list[ServiceRead]:
    return list(SERVICES)
