import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_service.errors import BadRequest, Conflict, NotFound
from clinic_service.models import Patient
from clinic_service.schemas import PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)

PATIENT_MUTABLE_FIELDS = (
    "identification", "first_name", "last_name", "date_of_birth", "gender",
    "phone", "email", "address", "emergency_contact", "emergency_phone",
    "blood_type", "allergies",
)
_NOT_NULL_FIELDS = frozenset({"identification", "first_name", "last_name", "date_of_birth", "gender"})


def _identification_taken(db: Session, identification: str, exclude_id: int = None) -> bool:
    query = select(Patient.id).where(Patient.identification == identification)
    if exclude_id is not None:
        query = query.where(Patient.id != exclude_id)
    return db.scalar(query) is not None


def list_patients(db: Session) -> List[Patient]:
    return list(db.scalars(select(Patient).order_by(Patient.created_at.desc(), Patient.id.desc())))


def get(db: Session, patient_id: int) -> Optional[Patient]:
    return db.get(Patient, patient_id)


def get_or_404(db: Session, patient_id: int) -> Patient:
    patient = get(db, patient_id)
    if not patient:
        raise NotFound("Patient not found")
    return patient


def create(db: Session, data: PatientCreate, creator_id: int) -> Patient:
    if _identification_taken(db, data.identification):
        raise Conflict("Identification already registered")

    patient = Patient(**data.model_dump(), created_by=creator_id)
    db.add(patient)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Identification uniqueness violated on insert: %s", data.identification)
        raise Conflict("Identification already registered")
    db.refresh(patient)
    logger.info("Patient created | id=%s by user %s", patient.id, creator_id)
    return patient


def update(db: Session, patient_id: int, data: PatientUpdate) -> Patient:
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if k in PATIENT_MUTABLE_FIELDS}
    if not changes:
        raise BadRequest("No fields to update")
    nulls = [k for k, v in changes.items() if v is None and k in _NOT_NULL_FIELDS]
    if nulls:
        raise BadRequest(errors=[{"field": k, "message": "must not be null"} for k in nulls])

    patient = get_or_404(db, patient_id)
    if "identification" in changes and _identification_taken(db, changes["identification"], patient_id):
        raise Conflict("Identification already registered")

    for key, value in changes.items():
        setattr(patient, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Identification already registered")
    db.refresh(patient)
    logger.info("Patient updated | id=%s fields=%s", patient_id, sorted(changes))
    return patient


def delete(db: Session, patient_id: int):
    patient = get_or_404(db, patient_id)
    # clinical histories go with it
    db.delete(patient)
    db.commit()
    logger.info("Patient deleted | id=%s", patient_id)
