"""
SQLAlchemy ORM models.

Tables
------
* ``users``             -- coordinator / viewer accounts
* ``drivers``           -- reference data, chosen manually when scheduling
* ``vehicles``          -- reference data with a passenger capacity
* ``service_requests``  -- customer trip requests
* ``assignments``       -- 1:1 with a request once it is scheduled

Indexes
-------
* **Unique** on ``assignments.request_id``: at most one assignment per request.
* **B-Tree** on ``service_requests.status`` and ``created_at`` for the
  filtered, newest-first listing.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from coachlink.domain.enums import RequestStatus, UserRole


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=_enum_values),
        default=UserRole.VIEWER,
        nullable=False,
    )
    full_name = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    phone = Column(String(40), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate = Column(String(20), unique=True, nullable=False)
    capacity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (CheckConstraint("capacity >= 1", name="ck_vehicles_capacity"),)


class ServiceRequestModel(Base):
    __tablename__ = "service_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_name = Column(String(100), nullable=False)
    phone = Column(String(40), nullable=False)
    pickup_location = Column(String(255), nullable=True)
    dropoff_location = Column(String(255), nullable=True)
    pickup_time = Column(DateTime(timezone=True), nullable=False)
    passengers = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(
        Enum(RequestStatus, name="request_status", values_callable=_enum_values),
        default=RequestStatus.PENDING,
        nullable=False,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    assignment = relationship(
        "AssignmentModel",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_requests_status", "status"),
        Index("idx_requests_created", "created_at"),
    )


class AssignmentModel(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(
        Integer,
        ForeignKey("service_requests.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    scheduled_time = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    driver = relationship("DriverModel", lazy="selectin")
    vehicle = relationship("VehicleModel", lazy="selectin")

    __table_args__ = (
        Index("idx_assignments_driver", "driver_id"),
        Index("idx_assignments_vehicle", "vehicle_id"),
    )
