import os
import sys
from datetime import date
from decimal import Decimal

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.users import User, ROLE_ADMIN, ROLE_PHARMACIST
from models.drug import Drug
from utils.hashing import get_password_hash

# Configuration
DEFAULT_PASSWORD = os.getenv("SEED_PASSWORD", "password")

SEED_USERS = [
    ("admin", "System Administrator", ROLE_ADMIN),
    ("pharm", "Duty Pharmacist", ROLE_PHARMACIST),
]

# code, name, category, manufacturer, price, stock, min stock, expiry, description, locked
SEED_DRUGS = [
    ("D001", "Amoxicillin Capsules", "Antibiotics", "North China Pharma", "12.50", 150, 50, date(2027, 12, 31), "Broad-spectrum semi-synthetic penicillin.", True),
    ("D002", "Cefradine Capsules", "Antibiotics", "Baiyunshan Pharma", "22.00", 80, 30, date(2027, 6, 30), "For acute pharyngitis and tonsillitis caused by susceptible bacteria.", False),
    ("D003", "Roxithromycin Tablets", "Antibiotics", "Yangtze River Pharma", "18.50", 60, 20, date(2027, 11, 20), "Macrolide antibiotic.", False),
    ("D006", "Cold Relief Granules", "Cold & Flu", "China Resources Sanjiu", "15.50", 300, 50, date(2027, 5, 20), "Relieves headache and fever caused by colds.", False),
    ("D007", "Lianhua Qingwen Capsules", "Cold & Flu", "Yiling Pharma", "24.00", 45, 100, date(2027, 9, 1), "Clears heat and detoxifies.", False),
    ("D009", "Loquat Cough Syrup", "Cough", "Nin Jiom", "35.00", 90, 20, date(2028, 3, 15), "Soothes the throat and relieves cough.", False),
    ("D011", "Ibuprofen SR Capsules", "Pain Relief", "Fenbid", "18.00", 45, 100, date(2026, 11, 30), "Relieves mild to moderate pain.", False),
    ("D012", "Paracetamol Tablets", "Pain Relief", "Panadol", "14.50", 180, 40, date(2027, 10, 10), "For fever caused by colds and flu.", False),
    ("D016", "Nifedipine CR Tablets", "Cardiovascular", "Bayer", "38.00", 100, 30, date(2028, 5, 10), "Hypertension and angina.", False),
    ("D019", "Metformin Tablets", "Diabetes", "Glucophage", "25.00", 130, 40, date(2027, 10, 15), "First-line treatment for type 2 diabetes.", False),
    ("D022", "Omeprazole Capsules", "Digestive", "Xiuzheng Pharma", "19.50", 110, 30, date(2027, 9, 20), "Gastric and duodenal ulcers.", False),
    ("D023", "Smectite Powder", "Digestive", "Smecta", "15.00", 140, 40, date(2028, 2, 15), "Acute and chronic diarrhoea in adults and children.", False),
]


def seed_users(session):
    users = {}
    for username, name, role in SEED_USERS:
        user = session.query(User).filter(User.username == username).first()
        if not user:
            user = User(username=username, name=name, role=role,
                        password_hash=get_password_hash(DEFAULT_PASSWORD))
            session.add(user)
            session.flush()
            print(f"Created user {username} ({role})")
        users[username] = user
    return users


def seed_drugs(session, creator):
    created = 0
    for code, name, category, manufacturer, price, stock, min_stock, expiry, description, locked in SEED_DRUGS:
        exists = session.query(Drug).filter(Drug.code == code, Drug.is_deleted.is_(False)).first()
        if exists:
            continue
        session.add(Drug(
            code=code, name=name, category=category, manufacturer=manufacturer,
            price=Decimal(price), stock=stock, min_stock_threshold=min_stock,
            expiry_date=expiry, description=description, is_locked=locked,
            created_by_id=creator.id,
        ))
        created += 1
    print(f"Inserted {created} drug(s)")


def main():
    init_db()
    session = SessionLocal()
    try:
        users = seed_users(session)
        seed_drugs(session, users["admin"])
        session.commit()
        print("Seeding finished.")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
