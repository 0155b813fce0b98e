import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_service.errors import BadRequest, NotFound
from clinic_service.models import ClinicalHistory, Patient
from clinic_service.schemas import HistoryCreate, HistoryUpdate

logger = logging.getLogger(__name__)

HISTORY_MUTABLE_FIELDS = (
    "reason_for_visit", "symptoms", "diagnosis", "treatment",
    "prescriptions", "observations", "vital_signs", "next_appointment",
)
_NOT_NULL_FIELDS = frozenset({"reason_for_visit"})

RECENT_HISTORIES_LIMIT = 10

_newest_first = (ClinicalHistory.visit_date.desc(), ClinicalHistory.id.desc())


def list_histories(db: Session) -> List[ClinicalHistory]:
    return list(db.scalars(select(ClinicalHistory).order_by(*_newest_first)))


def list_for_patient(db: Session, patient_id: int, limit: int = None) -> List[ClinicalHistory]:
    query = select(ClinicalHistory).where(ClinicalHistory.patient_id == patient_id).order_by(*_newest_first)
    if limit is not None:
        query = query.limit(limit)
    return list(db.scalars(query))


def get(db: Session, history_id: int) -> Optional[ClinicalHistory]:
    return db.get(ClinicalHistory, history_id)


def get_or_404(db: Session, history_id: int) -> ClinicalHistory:
    history = get(db, history_id)
    if not history:
        raise NotFound("Clinical history not found")
    return history


def create(db: Session, data: HistoryCreate, author_id: int) -> ClinicalHistory:
    if db.get(Patient, data.patient_id) is None:
        raise NotFound("Patient not found")

    fields = data.model_dump(exclude_none=True)
    history = ClinicalHistory(**fields, doctor_id=author_id)
    db.add(history)
    try:
        db.commit()
    except IntegrityError:
        # patient removed between the check and the insert
        db.rollback()
        raise NotFound("Patient not found")
    db.refresh(history)
    logger.info("Clinical history created | id=%s patient=%s by user %s", history.id, data.patient_id, author_id)
    return history


def update(db: Session, history_id: int, data: HistoryUpdate) -> ClinicalHistory:
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if k in HISTORY_MUTABLE_FIELDS}
    if not changes:
        raise BadRequest("No fields to update")
    if changes.get("reason_for_visit", "") is None:
        raise BadRequest(errors=[{"field": "reason_for_visit", "message": "must not be null"}])

    history = get_or_404(db, history_id)
    for key, value in changes.items():
        setattr(history, key, value)
    db.commit()
    db.refresh(history)
    logger.info("Clinical history updated | id=%s fields=%s", history_id, sorted(changes))
    return history


def delete(db: Session, history_id: int):
    history = get_or_404(db, history_id)
    db.delete(history)
    db.commit()
    logger.info("Clinical history deleted | id=%s", history_id)


# -----------------------------------------------------
# Search
# -----------------------------------------------------
def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _name_matches(term: str):
    pattern = f"%{_escape_like(term)}%"
    return or_(
        (Patient.first_name + " " + Patient.last_name).ilike(pattern, escape="\\"),
        Patient.first_name.ilike(pattern, escape="\\"),
        Patient.last_name.ilike(pattern, escape="\\"),
    )


def _patients(db: Session, *criteria) -> List[Patient]:
    query = select(Patient).where(*criteria).order_by(Patient.last_name, Patient.first_name, Patient.id)
    return list(db.scalars(query))


def search_by_document(db: Session, document: str):
    """The patient holding ``document`` and all its histories."""
    patient = db.scalar(select(Patient).where(Patient.identification == document))
    if patient is None:
        raise NotFound("Patient not found")
    return patient, list_for_patient(db, patient.id)


def search_by_name(db: Session, name: str):
    """One (patient, histories) group per patient whose name contains ``name``."""
    patients = _patients(db, _name_matches(name))
    if not patients:
        raise NotFound("No patients found with that name")
    return [(p, list_for_patient(db, p.id)) for p in patients]


def search(db: Session, term: str):
    """Exact identification or partial name; the most recent histories per patient."""
    patients = _patients(db, or_(Patient.identification == term, _name_matches(term)))
    if not patients:
        raise NotFound("No patients found for that search")
    return [(p, list_for_patient(db, p.id, limit=RECENT_HISTORIES_LIMIT)) for p in patients]
