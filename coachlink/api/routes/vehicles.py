"""Read-only vehicle reference data."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coachlink.api.dependencies import get_db
from coachlink.api.schemas import AssignmentResponse, VehicleDetailResponse, VehicleResponse
from coachlink.api.security import require
from coachlink.domain.enums import Permission
from coachlink.domain.errors import NotFound
from coachlink.infrastructure.repositories import AssignmentRepository, VehicleRepository

router = APIRouter(
    prefix="/vehicles",
    tags=["vehicles"],
    dependencies=[Depends(require(Permission.READ))],
)


@router.get("", response_model=list[VehicleResponse], summary="List vehicles")
async def list_vehicles(db: AsyncSession = Depends(get_db)):
    return await VehicleRepository(db).list_all()


@router.get("/{vehicle_id}", response_model=VehicleDetailResponse, summary="Get a vehicle")
async def get_vehicle(vehicle_id: int, db: AsyncSession = Depends(get_db)):
    vehicle = await VehicleRepository(db).get_by_id(vehicle_id)
    if vehicle is None:
        raise NotFound("Vehicle", vehicle_id)
    assignments = await AssignmentRepository(db).list_for_vehicle(vehicle_id)
    return VehicleDetailResponse(
        id=vehicle.id,
        plate=vehicle.plate,
        capacity=vehicle.capacity,
        assignments=[AssignmentResponse.model_validate(a) for a in assignments],
    )
