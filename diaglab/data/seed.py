# diaglab/data/seed.py
import uuid
from datetime import datetime, timezone, timedelta

from diaglab.data.database import SessionLocal, init_db
from diaglab.data.models import ProductModel, SessionModel, UserModel
from diaglab.domain.rules import compute_discount
from diaglab.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_TOKEN = "demo-patient-token"

CATALOG = [
    {"name": "Complete Blood Count", "category": "test", "subcategory": "hematology", "price": 300, "original_price": 400, "is_popular": True},
    {"name": "HbA1c", "category": "test", "subcategory": "diabetes", "price": 450, "original_price": 600},
    {"name": "Liver Function Test", "category": "organ_test", "subcategory": "liver", "price": 650, "original_price": 900},
    {"name": "Full Body Checkup", "category": "package", "subcategory": "wellness", "price": 2499, "original_price": 4999, "tests_included": 72, "is_popular": True},
    {"name": "Fitness Profile", "category": "lifestyle", "subcategory": "fitness", "price": 1299, "original_price": 1999, "tests_included": 24},
]


def seed():
    init_db()
    db = SessionLocal()
    try:
        #only seed an empty database
        if db.query(UserModel).first():
            logger.info("Database already seeded")
            return

        now = datetime.now(timezone.utc)
        user = UserModel(id=str(uuid.uuid4()), name="Demo Patient", email="patient@example.com", role="patient")
        db.add(user)
        db.add(
            SessionModel(
                id=str(uuid.uuid4()),
                user_id=user.id,
                token=DEMO_TOKEN,
                expires_at=now + timedelta(days=30),
            )
        )

        for entry in CATALOG:
            db.add(
                ProductModel(
                    discount_percentage=compute_discount(entry["price"], entry["original_price"]),
                    **entry,
                )
            )

        db.commit()
        logger.info(f"Seeded demo user {user.email} (token {DEMO_TOKEN}) and {len(CATALOG)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
