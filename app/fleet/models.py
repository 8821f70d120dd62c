# app/fleet/models.py

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer,
    String, func,
)
from sqlalchemy.ext.declarative import declared_attr
from sqlalchemy.orm import relationship, Mapped, mapped_column

from app.core.db import Base
from app.fleet.schemas import ShiftContext, ShiftStaticAttributes


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Mixins ---
class AuditMixin:
    """Mixin for auditing fields."""

    @declared_attr
    def created_by(cls):
        """
        Column for the actor who created this record
        """
        return Column(String(100), nullable=True, comment="Actor who created this record")

    @declared_attr
    def modified_by(cls):
        """
        Column for the actor who last modified this record
        """
        return Column(String(100), nullable=True, comment="Actor who last modified this record")

    @declared_attr
    def created_on(cls):
        """
        Column for the timestamp when this record was created
        """
        return Column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            comment="Timestamp when this record was created",
        )

    @declared_attr
    def updated_on(cls):
        """
        Column for the timestamp when this record was last updated
        """
        return Column(
            DateTime(timezone=True),
            default=utc_now,
            onupdate=utc_now,
            server_default=func.now(),
            comment="Timestamp when this record was last updated",
        )


class Driver(Base, AuditMixin):
    """
    Driver model. Owners are drivers with is_owner set.
    """

    __tablename__ = "drivers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    driver_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_owner: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Cab(Base, AuditMixin):
    """
    Cab model carrying the static attributes its shifts inherit.
    """

    __tablename__ = "cabs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    cab_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    cab_type: Mapped[str] = mapped_column(String(20), nullable=False)
    share_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    has_airport_license: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    owner_driver_number: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True, comment="Driver number of the cab owner"
    )

    shifts: Mapped[List["CabShift"]] = relationship(back_populates="cab")


class CabShift(Base, AuditMixin):
    """
    One of a cab's shifts (DAY or NIGHT).

    current_profile_id mirrors the open ShiftProfileAssignment for fast reads;
    the assignment table stays the source of truth.
    """

    __tablename__ = "cab_shifts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    cab_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cabs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    shift_type: Mapped[str] = mapped_column(String(20), nullable=False)
    current_profile_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("shift_profiles.id", ondelete="SET NULL"), nullable=True
    )

    cab: Mapped["Cab"] = relationship(back_populates="shifts", lazy="joined")

    def static_attributes(self) -> ShiftStaticAttributes:
        """Static attributes derived from the cab plus this shift's type."""
        return ShiftStaticAttributes(
            cab_type=self.cab.cab_type,
            share_type=self.cab.share_type,
            has_airport_license=self.cab.has_airport_license,
            shift_type=self.shift_type,
        )

    def to_context(self) -> ShiftContext:
        return ShiftContext(
            shift_id=self.id,
            cab_number=self.cab.cab_number,
            owner_driver_number=self.cab.owner_driver_number,
            attributes=self.static_attributes(),
            current_profile_id=self.current_profile_id,
        )
