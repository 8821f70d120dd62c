# app/attributes/models.py

"""
Dynamic attribute models - SQLAlchemy 2.x

- AttributeType: catalogue of freeform attributes (transponder, rating, ...)
- ShiftAttributeValue: an attribute carried by a shift over a date window
"""

from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.fleet.models import AuditMixin


class AttributeType(Base, AuditMixin):
    """Catalogue entry for a dynamic attribute."""

    __tablename__ = "attribute_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    attribute_code: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    attribute_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    data_type: Mapped[str] = mapped_column(String(20), nullable=False, default="STRING")
    requires_value: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    validation_pattern: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True, comment="Regex the value must fully match"
    )
    help_text: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ShiftAttributeValue(Base, AuditMixin):
    """
    A dynamic attribute held by a shift.

    end_date NULL means the attribute is current. At most one value per
    (shift, attribute type) may cover any date.
    """

    __tablename__ = "shift_attribute_values"
    __table_args__ = (
        Index("idx_shift_attr", "shift_id", "attribute_type_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    shift_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cab_shifts.id", ondelete="CASCADE"), nullable=False
    )
    attribute_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("attribute_types.id"), nullable=False
    )
    attribute_value: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    attribute_type: Mapped["AttributeType"] = relationship(lazy="joined")
