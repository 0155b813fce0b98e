import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from clinic_service import histories_repository
from clinic_service.db import get_db
from clinic_service.models import RoleEnum
from clinic_service.schemas import (
    DocumentSearchResult, FlexibleSearchGroup, FlexibleSearchResult, HistoryBrief,
    HistoryCreate, HistoryDetail, HistoryOut, HistoryUpdate, HistoryWithPatient,
    NameSearchGroup, NameSearchResult, PatientSummary,
)
from clinic_service.security import get_current_user_id, require_roles

logger = logging.getLogger(__name__)

# Any authenticated user may read, create and update histories
router = APIRouter(dependencies=[Depends(get_current_user_id)])

admin_only = require_roles(RoleEnum.admin.value)


@router.get("", response_model=List[HistoryWithPatient])
def list_histories(db: Session = Depends(get_db)):
    return [HistoryWithPatient.from_history(h) for h in histories_repository.list_histories(db)]


@router.get("/patient/{patient_id}", response_model=List[HistoryOut])
def list_patient_histories(patient_id: int, db: Session = Depends(get_db)):
    return [HistoryOut.model_validate(h) for h in histories_repository.list_for_patient(db, patient_id)]


@router.get("/search/by-document/{document}", response_model=DocumentSearchResult)
def search_by_document(document: str, db: Session = Depends(get_db)):
    logger.debug("Searching histories by document %s", document)
    patient, histories = histories_repository.search_by_document(db, document)
    return DocumentSearchResult(
        patient=PatientSummary.model_validate(patient),
        histories=[HistoryOut.model_validate(h) for h in histories],
        total=len(histories),
    )


@router.get("/search/by-name/{name}", response_model=NameSearchResult)
def search_by_name(name: str, db: Session = Depends(get_db)):
    groups = histories_repository.search_by_name(db, name)
    return NameSearchResult(
        search_term=name,
        total_patients=len(groups),
        results=[
            NameSearchGroup(
                patient=PatientSummary.model_validate(patient),
                histories=[HistoryOut.model_validate(h) for h in histories],
                total_histories=len(histories),
            )
            for patient, histories in groups
        ],
    )


@router.get("/search/{term}", response_model=FlexibleSearchResult)
def search(term: str, db: Session = Depends(get_db)):
    groups = histories_repository.search(db, term)
    return FlexibleSearchResult(
        search_term=term,
        total_patients=len(groups),
        results=[
            FlexibleSearchGroup(
                patient=PatientSummary.model_validate(patient),
                recent_histories=[HistoryBrief.model_validate(h) for h in histories],
                total_histories=len(histories),
            )
            for patient, histories in groups
        ],
    )


@router.get("/{history_id}", response_model=HistoryDetail)
def get_history(history_id: int, db: Session = Depends(get_db)):
    return HistoryDetail.from_history(histories_repository.get_or_404(db, history_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_history(data: HistoryCreate,
                   user_id: int = Depends(get_current_user_id),
                   db: Session = Depends(get_db)):
    history = histories_repository.create(db, data, user_id)
    return {"message": "Clinical history created successfully", "historyId": history.id}


@router.put("/{history_id}")
def update_history(history_id: int, data: HistoryUpdate, db: Session = Depends(get_db)):
    histories_repository.update(db, history_id, data)
    return {"message": "Clinical history updated successfully"}


@router.delete("/{history_id}")
def delete_history(history_id: int, _: int = Depends(admin_only), db: Session = Depends(get_db)):
    histories_repository.delete(db, history_id)
    return {"message": "Clinical history deleted successfully"}
