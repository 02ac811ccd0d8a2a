"""
Seed script to generate synthetic alerts and manager approvals for demo purposes
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import Session
from ecotrack.database import SessionLocal, engine, Base
from ecotrack.models.alert import Alert
from ecotrack.models.approval import ManagerApproval
from ecotrack.services.alert_service import calculate_risk_level, describe_alert, STORAGE_THRESHOLDS
from ecotrack.services.authorization import ROLE_APPROVAL_TYPES
from datetime import datetime, timedelta, timezone
from faker import Faker

fake = Faker()

PRODUCTS = ["Milk", "Lettuce", "Strawberries", "Chicken Breast", "Salmon", "Yogurt", "Bananas", "Ice Cream"]
LOCATIONS = ["Cold Storage A", "Freezer Unit B", "Warehouse C", "CA Storage D"]


def create_alerts(db: Session, business_id: str, count: int = 10) -> list[Alert]:
    """Create synthetic active alerts"""
    alerts = []
    for _ in range(count):
        product_name = fake.random_element(elements=PRODUCTS)
        storage_category = fake.random_element(elements=list(STORAGE_THRESHOLDS))
        days_left = fake.random_int(min=0, max=20)
        temperature = round(fake.random.uniform(-20.0, 30.0), 1)
        humidity = round(fake.random.uniform(30.0, 100.0), 1)
        risk_level = calculate_risk_level(days_left, temperature, humidity, storage_category)
        quantity = fake.random_int(min=5, max=500)

        alert = Alert(
            business_id=business_id,
            product_id=fake.bothify(text='PRD-####'),
            product_name=product_name,
            risk_level=risk_level,
            details=describe_alert(product_name, risk_level, days_left),
            days_left=days_left,
            temperature=temperature,
            humidity=humidity,
            location=fake.random_element(elements=LOCATIONS),
            quantity=f"{quantity}kg",
            value=f"{quantity * 80:.2f}",
            status="active"
        )
        db.add(alert)
        alerts.append(alert)
    db.commit()
    return alerts


def create_approvals(db: Session, business_id: str, per_role: int = 4) -> list[ManagerApproval]:
    """Create pending and decided approvals for every manager queue"""
    approvals = []
    for role, approval_types in ROLE_APPROVAL_TYPES.items():
        for i in range(per_role):
            risk_level = fake.random_element(elements=("HIGH", "MEDIUM", "LOW"))
            status = "pending" if i < per_role // 2 else fake.random_element(elements=("approved", "rejected"))
            decided = status != "pending"

            approval = ManagerApproval(
                business_id=business_id,
                required_role=role.value,
                approval_type=approval_types[0],
                product_name=fake.random_element(elements=PRODUCTS),
                quantity=f"{fake.random_int(min=5, max=500)}kg",
                location=fake.random_element(elements=LOCATIONS),
                days_left=fake.random_int(min=0, max=14),
                risk_level=risk_level,
                ai_suggestion=fake.sentence(),
                priority=risk_level,
                submitted_by=fake.uuid4(),
                status=status,
                reviewed_by=fake.uuid4() if decided else None,
                comments=fake.sentence() if decided else None,
                reviewed_at=datetime.now(timezone.utc) - timedelta(hours=fake.random_int(min=1, max=72)) if decided else None
            )
            db.add(approval)
            approvals.append(approval)
    db.commit()
    return approvals


def main():
    """Main seeding function"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    business_ids = [fake.uuid4() for _ in range(2)]

    db = SessionLocal()
    try:
        total_alerts = 0
        total_approvals = 0
        for business_id in business_ids:
            print(f"Seeding business {business_id}...")
            alerts = create_alerts(db, business_id, count=10)
            approvals = create_approvals(db, business_id, per_role=4)
            total_alerts += len(alerts)
            total_approvals += len(approvals)

        print("\nSeeding complete!")
        print(f"Summary:")
        print(f"  - Businesses: {len(business_ids)}")
        print(f"  - Alerts: {total_alerts}")
        print(f"  - Approvals: {total_approvals}")

    except Exception as e:
        print(f"Error during seeding: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
