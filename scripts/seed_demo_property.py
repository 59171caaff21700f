"""
Seed the database with a demo apartment financed by a bank loan.
Prints the remaining debt as of today so the engine can be checked by eye.
"""
import sys
import os
from datetime import date
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.calculations.mortgage import PaymentTiming, round_currency
from app.db.database import get_db_context, init_db
from app.db.models import Property, PropertyType, Mortgage
from app.services.mortgage import local_today, remaining_debt

DEMO_NAME = "Skyline Apartment 4B"


def main():
    init_db()

    with get_db_context() as db:
        existing = db.query(Property).filter(Property.name == DEMO_NAME).first()
        if existing:
            print(f"Property '{DEMO_NAME}' already exists (ID: {existing.id})")
            return

        property = Property(
            name=DEMO_NAME,
            address="Hauptstrasse 12, 10115 Berlin",
            property_type=PropertyType.APARTMENT,
            notes="Demo data",
        )
        property.mortgage = Mortgage(
            loan_amount=Decimal("250000"),
            start_date=date(2024, 1, 1),
            interest_rate=Decimal("3.5"),
            principal_rate=Decimal("2.0"),
            bank_name="Sparkasse",
            payment_timing=PaymentTiming.START_OF_MONTH,
        )
        db.add(property)
        db.flush()
        print(f"Created property: {property.name} (ID: {property.id})")

        today = local_today()
        balance = remaining_debt(property, today)
        print(f"Remaining debt as of {today.isoformat()}: {round_currency(balance)}")


if __name__ == "__main__":
    main()
