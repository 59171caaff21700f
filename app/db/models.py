"""
SQLAlchemy ORM models for the property portfolio.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Numeric,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import declarative_base, relationship
import uuid
import enum

from app.calculations.mortgage import MortgageTerms, PaymentTiming


class PropertyType(str, enum.Enum):
    """Asset class of a property."""
    APARTMENT = "APARTMENT"
    HOUSE = "HOUSE"
    COMMERCIAL = "COMMERCIAL"
    LAND = "LAND"
    PARKING = "PARKING"


Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


class AuditMixin:
    """Mixin for audit fields on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
    is_deleted = Column(Boolean, default=False, nullable=False)


class Property(AuditMixin, Base):
    """Property model representing a real estate asset."""

    __tablename__ = "properties"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    address = Column(String(255))
    property_type = Column(
        SQLEnum(PropertyType), default=PropertyType.APARTMENT, nullable=False
    )
    notes = Column(Text)

    # At most one active loan per property
    mortgage = relationship(
        "Mortgage",
        back_populates="property",
        uselist=False,
        cascade="all, delete-orphan",
    )


class Mortgage(AuditMixin, Base):
    """Original terms of the loan financing a property.

    Only the terms are stored; the remaining balance is always recomputed.
    """

    __tablename__ = "mortgages"

    id = Column(String, primary_key=True, default=generate_uuid)
    property_id = Column(
        String, ForeignKey("properties.id"), nullable=False, unique=True, index=True
    )

    loan_amount = Column(Numeric(14, 2), nullable=False)
    start_date = Column(Date, nullable=False)
    interest_rate = Column(Numeric(9, 4), nullable=False)  # Annual %, e.g. 3.5
    principal_rate = Column(Numeric(9, 4), nullable=False)  # Annual %, e.g. 2.0
    bank_name = Column(String(255))
    payment_timing = Column(
        SQLEnum(PaymentTiming), default=PaymentTiming.START_OF_MONTH, nullable=False
    )

    # Relationships
    property = relationship("Property", back_populates="mortgage")

    def to_terms(self) -> MortgageTerms:
        """Build engine terms from the stored row."""
        return MortgageTerms(
            loan_amount=self.loan_amount,
            start_date=self.start_date,
            interest_rate=self.interest_rate,
            principal_rate=self.principal_rate,
            bank_name=self.bank_name,
            payment_timing=self.payment_timing,
        )
