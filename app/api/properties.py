"""
Property management API endpoints.
"""

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date
from sqlalchemy.orm import Session

from app.calculations.mortgage import (
    InvalidTermsError,
    PaymentTiming,
    calculate_total_interest,
    calculate_total_principal,
    generate_payment_schedule,
    round_currency,
)
from app.config import get_settings
from app.db.database import get_db
from app.db.models import Mortgage, Property, PropertyType
from app.services.mortgage import local_today, remaining_debt

router = APIRouter()
settings = get_settings()


class MortgageInput(BaseModel):
    """Loan terms submitted with a property."""

    loan_amount: float = Field(gt=0)
    start_date: date
    interest_rate: float = Field(ge=0)
    principal_rate: float = Field(ge=0)
    bank_name: Optional[str] = None
    payment_timing: PaymentTiming = PaymentTiming.START_OF_MONTH


class MortgageResponse(BaseModel):
    """Stored loan terms plus the derived installment."""

    loan_amount: float
    start_date: date
    interest_rate: float
    principal_rate: float
    bank_name: Optional[str]
    payment_timing: PaymentTiming
    monthly_payment: Optional[float] = None


class PropertyCreate(BaseModel):
    """Schema for creating a property."""

    name: str
    address: Optional[str] = None
    property_type: PropertyType = PropertyType.APARTMENT
    notes: Optional[str] = None
    mortgage: Optional[MortgageInput] = None


class PropertyUpdate(BaseModel):
    """Schema for updating a property.

    Sending ``mortgage`` replaces the loan terms; sending ``mortgage: null``
    marks the property mortgage-free.
    """

    name: Optional[str] = None
    address: Optional[str] = None
    property_type: Optional[PropertyType] = None
    notes: Optional[str] = None
    mortgage: Optional[MortgageInput] = None

    @field_validator("name", "property_type")
    @classmethod
    def not_null(cls, value):
        # Both columns are NOT NULL; omit the key to leave them unchanged
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class PropertyResponse(BaseModel):
    """Schema for property response."""

    id: str
    name: str
    address: Optional[str]
    property_type: PropertyType
    notes: Optional[str]
    mortgage: Optional[MortgageResponse] = None
    remaining_balance: Optional[float] = None
    balance_as_of: Optional[date] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PropertyListResponse(BaseModel):
    """Response for listing properties."""

    properties: List[PropertyResponse]
    total: int


def _to_money(value) -> Optional[float]:
    if value is None:
        return None
    return float(round_currency(value, settings.currency_decimal_places))


def mortgage_to_response(mortgage: Mortgage) -> MortgageResponse:
    """Convert Mortgage model to response schema."""
    try:
        monthly_payment = _to_money(mortgage.to_terms().monthly_payment)
    except InvalidTermsError:
        monthly_payment = None

    return MortgageResponse(
        loan_amount=float(mortgage.loan_amount),
        start_date=mortgage.start_date,
        interest_rate=float(mortgage.interest_rate),
        principal_rate=float(mortgage.principal_rate),
        bank_name=mortgage.bank_name,
        payment_timing=mortgage.payment_timing,
        monthly_payment=monthly_payment,
    )


def property_to_response(prop: Property, as_of: date) -> PropertyResponse:
    """Convert Property model to response schema with its current debt."""
    mortgage = mortgage_to_response(prop.mortgage) if prop.mortgage else None

    return PropertyResponse(
        id=prop.id,
        name=prop.name,
        address=prop.address,
        property_type=prop.property_type or PropertyType.APARTMENT,
        notes=prop.notes,
        mortgage=mortgage,
        remaining_balance=_to_money(remaining_debt(prop, as_of)),
        balance_as_of=as_of if mortgage else None,
        created_at=prop.created_at.isoformat() if prop.created_at else None,
        updated_at=prop.updated_at.isoformat() if prop.updated_at else None,
    )


def apply_mortgage(prop: Property, mortgage_data: Optional[MortgageInput]) -> None:
    """Create, replace, or remove the loan terms of a property."""
    if mortgage_data is None:
        # delete-orphan cascade removes the row
        prop.mortgage = None
        return

    if prop.mortgage is None:
        prop.mortgage = Mortgage()

    # Update in place so the unique property_id row is never duplicated
    for field, value in mortgage_data.model_dump().items():
        setattr(prop.mortgage, field, value)


def get_active_property(db: Session, property_id: str) -> Property:
    """Fetch a non-deleted property or raise 404."""
    db_property = (
        db.query(Property)
        .filter(Property.id == property_id, Property.is_deleted == False)
        .first()
    )

    if not db_property:
        raise HTTPException(status_code=404, detail="Property not found")

    return db_property


@router.get("/", response_model=PropertyListResponse)
async def list_properties(
    skip: int = 0,
    limit: int = 100,
    property_type: Optional[PropertyType] = None,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """List all properties with their remaining mortgage debt."""
    query = db.query(Property).filter(Property.is_deleted == False)

    if property_type:
        query = query.filter(Property.property_type == property_type)

    total = query.count()
    properties = query.order_by(Property.name).offset(skip).limit(limit).all()
    as_of = as_of or local_today()

    return PropertyListResponse(
        properties=[property_to_response(p, as_of) for p in properties],
        total=total,
    )


@router.post("/", response_model=PropertyResponse, status_code=201)
async def create_property(
    property_data: PropertyCreate,
    db: Session = Depends(get_db),
):
    """Create a new property, optionally with its mortgage."""
    db_property = Property(
        name=property_data.name,
        address=property_data.address,
        property_type=property_data.property_type,
        notes=property_data.notes,
    )
    if property_data.mortgage is not None:
        apply_mortgage(db_property, property_data.mortgage)

    db.add(db_property)
    db.commit()
    db.refresh(db_property)

    return property_to_response(db_property, local_today())


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Get a property by ID."""
    db_property = get_active_property(db, property_id)
    return property_to_response(db_property, as_of or local_today())


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    db: Session = Depends(get_db),
):
    """Update a property."""
    db_property = get_active_property(db, property_id)

    # Update only provided fields
    update_data = property_data.model_dump(exclude_unset=True)
    mortgage_sent = "mortgage" in update_data
    update_data.pop("mortgage", None)

    for field, value in update_data.items():
        setattr(db_property, field, value)

    if mortgage_sent:
        apply_mortgage(db_property, property_data.mortgage)

    db.commit()
    db.refresh(db_property)

    return property_to_response(db_property, local_today())


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete a property."""
    db_property = get_active_property(db, property_id)

    db_property.is_deleted = True
    db.commit()

    return {"deleted": True, "id": property_id}


@router.get("/{property_id}/mortgage/schedule")
async def get_mortgage_schedule(
    property_id: str,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """List the installments of a property's mortgage posted so far."""
    db_property = get_active_property(db, property_id)

    if db_property.mortgage is None:
        raise HTTPException(status_code=404, detail="Property has no mortgage")

    as_of = as_of or local_today()
    places = settings.currency_decimal_places

    try:
        terms = db_property.mortgage.to_terms()
        schedule = generate_payment_schedule(terms, as_of)
    except InvalidTermsError as e:
        raise HTTPException(status_code=422, detail=f"Mortgage data corrupt: {e}")

    remaining = schedule[-1].ending_balance if schedule else terms.loan_amount

    return {
        "property_id": property_id,
        "as_of": as_of.isoformat(),
        "monthly_payment": _to_money(terms.monthly_payment),
        "remaining_balance": _to_money(remaining),
        "total_interest": _to_money(calculate_total_interest(schedule)),
        "total_principal": _to_money(calculate_total_principal(schedule)),
        "schedule": [row.to_dict(places) for row in schedule],
        "total": len(schedule),
    }
