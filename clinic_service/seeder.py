import logging
import random

from faker import Faker
from sqlalchemy.orm import Session

from clinic_service import users_repository
from clinic_service.config import Settings, get_settings
from clinic_service.db import SessionLocal, init_db
from clinic_service.models import (
    ClinicalHistory, DocumentTypeEnum, GenderEnum, Patient, RoleEnum, User,
)

logger = logging.getLogger(__name__)

fake = Faker("es_CO")

REASONS = [
    "Control general", "Dolor de cabeza", "Fiebre", "Dolor abdominal",
    "Control de tension", "Tos persistente", "Revision de examenes",
]


def ensure_default_admin(db: Session, settings: Settings) -> User:
    """Create the bootstrap administrator unless its email is already registered."""
    admin = users_repository.get_by_email(db, settings.default_admin_email)
    if admin:
        return admin
    admin = User(
        name=settings.default_admin_name,
        email=settings.default_admin_email,
        password_hash=users_repository.hash_password(settings.default_admin_password),
        role=RoleEnum.admin,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Default admin created (%s)", admin.email)
    return admin


def seed(n: int = 20, histories_per_patient: int = 3):
    settings = get_settings()
    init_db()
    db: Session = SessionLocal()
    try:
        admin = ensure_default_admin(db, settings)
        patients = []
        for _ in range(n):
            gender = random.choice([GenderEnum.M, GenderEnum.F])
            first_name = fake.first_name_male() if gender == GenderEnum.M else fake.first_name_female()
            patient = Patient(
                identification=fake.unique.numerify("##########"),
                document_type=random.choice(list(DocumentTypeEnum)),
                first_name=first_name,
                last_name=fake.last_name(),
                date_of_birth=fake.date_of_birth(minimum_age=1, maximum_age=90),
                gender=gender,
                phone=fake.numerify("3#########"),
                email=fake.email(),
                address=fake.address().replace("\n", ", "),
                blood_type=random.choice(["O+", "O-", "A+", "A-", "B+", "AB+"]),
                created_by=admin.id,
            )
            for _ in range(random.randint(0, histories_per_patient)):
                patient.histories.append(ClinicalHistory(
                    doctor_id=admin.id,
                    visit_date=fake.date_time_between(start_date="-2y", end_date="now"),
                    reason_for_visit=random.choice(REASONS),
                    diagnosis=fake.sentence(nb_words=6),
                    vital_signs={
                        "temp": round(random.uniform(36.0, 38.5), 1),
                        "hr": random.randint(55, 110),
                    },
                ))
            db.add(patient)
            patients.append(patient)
        db.commit()
        for p in patients:
            db.refresh(p)
        logger.info("Seeded %d patients", len(patients))
        return patients
    finally:
        db.close()


if __name__ == "__main__":
    import sys

    logging.basicConfig(level=logging.INFO)
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 20
    for p in seed(count):
        print({"id": p.id, "identification": p.identification, "name": p.full_name})
