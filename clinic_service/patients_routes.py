from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from clinic_service import patients_repository
from clinic_service.db import get_db
from clinic_service.models import RoleEnum
from clinic_service.schemas import PatientCreate, PatientOut, PatientUpdate
from clinic_service.security import require_roles

router = APIRouter()

staff = require_roles(RoleEnum.admin.value, RoleEnum.doctor.value, RoleEnum.recepcionista.value)
admin_only = require_roles(RoleEnum.admin.value)


@router.get("", response_model=List[PatientOut])
def list_patients(_: int = Depends(staff), db: Session = Depends(get_db)):
    return [PatientOut.model_validate(p) for p in patients_repository.list_patients(db)]


@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(patient_id: int, _: int = Depends(staff), db: Session = Depends(get_db)):
    return PatientOut.model_validate(patients_repository.get_or_404(db, patient_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_patient(data: PatientCreate, user_id: int = Depends(staff), db: Session = Depends(get_db)):
    patient = patients_repository.create(db, data, user_id)
    return {"message": "Patient created successfully", "patientId": patient.id}


@router.put("/{patient_id}")
def update_patient(patient_id: int, data: PatientUpdate,
                   _: int = Depends(staff), db: Session = Depends(get_db)):
    patients_repository.update(db, patient_id, data)
    return {"message": "Patient updated successfully"}


@router.delete("/{patient_id}")
def delete_patient(patient_id: int, _: int = Depends(admin_only), db: Session = Depends(get_db)):
    patients_repository.delete(db, patient_id)
    return {"message": "Patient deleted successfully"}
