"""
Seed script -- populates the database with reference data and logins.

Run after migrations:
    python seed.py

Creates:
  - 3 users: coordinator / password, viewer / viewer123, admin / admin123
  - 3 drivers
  - 3 vehicles (capacities 45-55)
  - 3 sample service requests (pending, approved, scheduled)
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from coachlink.domain.enums import RequestStatus, UserRole
from coachlink.infrastructure.database import async_session_factory, engine
from coachlink.infrastructure.models import (
    AssignmentModel,
    DriverModel,
    ServiceRequestModel,
    UserModel,
    VehicleModel,
)
from coachlink.infrastructure.security import hash_password

USERS = [
    {
        "username": "coordinator",
        "password": "password",
        "role": UserRole.COORDINATOR,
        "full_name": "System Coordinator",
        "email": "coordinator@coachlink.com",
    },
    {
        "username": "viewer",
        "password": "viewer123",
        "role": UserRole.VIEWER,
        "full_name": "System Viewer",
        "email": "viewer@coachlink.com",
    },
    {
        "username": "admin",
        "password": "admin123",
        "role": UserRole.COORDINATOR,
        "full_name": "Admin User",
        "email": "admin@coachlink.com",
    },
]

DRIVERS = [
    {"name": "John Doe", "phone": "123-456-7890"},
    {"name": "Jane Smith", "phone": "234-567-8901"},
    {"name": "Michael Johnson", "phone": "345-678-9012"},
]

VEHICLES = [
    {"plate": "ABC123", "capacity": 50},
    {"plate": "XYZ789", "capacity": 45},
    {"plate": "DEF456", "capacity": 55},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(select(func.count()).select_from(UserModel))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        for u in USERS:
            session.add(
                UserModel(
                    username=u["username"],
                    hashed_password=hash_password(u["password"]),
                    role=u["role"],
                    full_name=u["full_name"],
                    email=u["email"],
                    is_active=True,
                )
            )
        await session.flush()
        print(f"  Created {len(USERS)} users")

        # ── Reference data ────────────────────────────────────────────
        drivers = [DriverModel(**d) for d in DRIVERS]
        vehicles = [VehicleModel(**v) for v in VEHICLES]
        session.add_all(drivers + vehicles)
        await session.flush()
        print(f"  Created {len(drivers)} drivers, {len(vehicles)} vehicles")

        # ── Sample requests ───────────────────────────────────────────
        tomorrow = datetime.now(timezone.utc).replace(
            minute=0, second=0, microsecond=0
        ) + timedelta(days=1)
        requests_data = [
            ("Acme School Trip", "555-0100", "Central Station", "City Museum", 40,
             RequestStatus.PENDING),
            ("Riverside Choir", "555-0111", "Riverside Hall", "Concert Arena", 30,
             RequestStatus.APPROVED),
            ("Northwind Corporate", "555-0122", "Airport Terminal 2", "Harbour Hotel", 45,
             RequestStatus.SCHEDULED),
        ]
        for i, (name, phone, pickup, dropoff, passengers, status) in enumerate(requests_data):
            request = ServiceRequestModel(
                customer_name=name,
                phone=phone,
                pickup_location=pickup,
                dropoff_location=dropoff,
                pickup_time=tomorrow + timedelta(hours=i * 3),
                passengers=passengers,
                status=status,
            )
            if status is RequestStatus.SCHEDULED:
                request.assignment = AssignmentModel(
                    driver_id=drivers[0].id,
                    vehicle_id=vehicles[0].id,
                    scheduled_time=request.pickup_time,
                )
            session.add(request)
        await session.flush()
        print(f"  Created {len(requests_data)} service requests")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
