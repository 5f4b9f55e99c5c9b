"""Read-only driver reference data."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coachlink.api.dependencies import get_db
from coachlink.api.schemas import AssignmentResponse, DriverDetailResponse, DriverResponse
from coachlink.api.security import require
from coachlink.domain.enums import Permission
from coachlink.domain.errors import NotFound
from coachlink.infrastructure.repositories import AssignmentRepository, DriverRepository

router = APIRouter(
    prefix="/drivers",
    tags=["drivers"],
    dependencies=[Depends(require(Permission.READ))],
)


@router.get("", response_model=list[DriverResponse], summary="List drivers")
async def list_drivers(db: AsyncSession = Depends(get_db)):
    return await DriverRepository(db).list_all()


@router.get("/{driver_id}", response_model=DriverDetailResponse, summary="Get a driver")
async def get_driver(driver_id: int, db: AsyncSession = Depends(get_db)):
    driver = await DriverRepository(db).get_by_id(driver_id)
    if driver is None:
        raise NotFound("Driver", driver_id)
    assignments = await AssignmentRepository(db).list_for_driver(driver_id)
    return DriverDetailResponse(
        id=driver.id,
        name=driver.name,
        phone=driver.phone,
        assignments=[AssignmentResponse.model_validate(a) for a in assignments],
    )
