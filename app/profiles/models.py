# app/profiles/models.py

"""
Shift profile models - SQLAlchemy 2.x

- ShiftProfile: a named bundle of static filters plus dynamic requirements
- ShiftProfileAttribute: one dynamic requirement of a profile
- ShiftProfileAssignment: audit log of which profile a shift had and when
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import (
    Boolean, Date, ForeignKey, Index, Integer, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.fleet.models import AuditMixin
from app.profiles.schemas import ShiftProfileRecord


class ShiftProfile(Base, AuditMixin):
    """
    Reusable shift classification.

    System profiles can be edited but never deleted. usage_count is the
    number of shifts whose open assignment points here.
    """

    __tablename__ = "shift_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    profile_code: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    profile_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    cab_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    share_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    has_airport_license: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    shift_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    color_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    is_system_profile: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    requirements: Mapped[List["ShiftProfileAttribute"]] = relationship(
        back_populates="profile", cascade="all, delete-orphan",
        order_by="ShiftProfileAttribute.id", lazy="selectin",
    )

    def to_record(self) -> ShiftProfileRecord:
        return ShiftProfileRecord.model_validate(self)


class ShiftProfileAttribute(Base, AuditMixin):
    """Dynamic attribute requirement; one per (profile, attribute type)."""

    __tablename__ = "shift_profile_attributes"
    __table_args__ = (
        UniqueConstraint("profile_id", "attribute_type_id", name="uq_profile_attribute"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shift_profiles.id", ondelete="CASCADE"), nullable=False
    )
    attribute_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attribute_types.id"), nullable=False
    )
    is_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    expected_value: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    profile: Mapped["ShiftProfile"] = relationship(back_populates="requirements")


class ShiftProfileAssignment(Base, AuditMixin):
    """
    Which profile applied to a shift over a date window.

    Append-mostly: rows are created on assignment and only ever get an end
    date afterwards. At most one row per shift has a NULL end_date.
    """

    __tablename__ = "shift_profile_assignments"
    __table_args__ = (
        Index("idx_assignment_shift_dates", "shift_id", "start_date", "end_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    shift_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cab_shifts.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shift_profiles.id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    assigned_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ended_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
