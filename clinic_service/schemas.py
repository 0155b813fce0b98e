from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from clinic_service.models import DocumentTypeEnum, GenderEnum, RoleEnum

VitalSigns = Union[Dict[str, Any], List[Any]]


def _normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


# --- Auth ---
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: RoleEnum


# --- Users ---
class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    # bcrypt only reads the first 72 bytes
    password: str = Field(min_length=6, max_length=72)
    role: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class UserOut(UserSummary):
    is_active: bool
    created_at: Optional[datetime] = None


# --- Patients ---
class PatientCreate(BaseModel):
    identification: str = Field(min_length=1, max_length=20)
    document_type: DocumentTypeEnum = DocumentTypeEnum.CC
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    gender: GenderEnum
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    blood_type: Optional[str] = Field(default=None, max_length=5)
    allergies: Optional[str] = None


class PatientUpdate(BaseModel):
    identification: Optional[str] = Field(default=None, min_length=1, max_length=20)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[GenderEnum] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    blood_type: Optional[str] = Field(default=None, max_length=5)
    allergies: Optional[str] = None


class PatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    identification: str
    document_type: DocumentTypeEnum
    first_name: str
    last_name: str
    date_of_birth: date
    gender: GenderEnum
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: Optional[str] = None
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PatientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    identification: str
    document_type: DocumentTypeEnum
    first_name: str
    last_name: str
    full_name: str


# --- Clinical histories ---
class HistoryCreate(BaseModel):
    patient_id: int
    reason_for_visit: str = Field(min_length=1)
    visit_date: Optional[datetime] = None
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    prescriptions: Optional[str] = None
    observations: Optional[str] = None
    vital_signs: Optional[VitalSigns] = None
    next_appointment: Optional[date] = None

    @field_validator("visit_date")
    @classmethod
    def visit_date_to_utc(cls, v):
        # stored without offset, so aware values are kept as UTC
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc)
        return v


class HistoryUpdate(BaseModel):
    reason_for_visit: Optional[str] = Field(default=None, min_length=1)
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    prescriptions: Optional[str] = None
    observations: Optional[str] = None
    vital_signs: Optional[VitalSigns] = None
    next_appointment: Optional[date] = None


class HistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: int
    doctor_name: Optional[str] = None
    visit_date: datetime
    reason_for_visit: str
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    prescriptions: Optional[str] = None
    observations: Optional[str] = None
    vital_signs: Optional[VitalSigns] = None
    next_appointment: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class HistoryWithPatient(HistoryOut):
    first_name: str
    last_name: str
    identification: str

    @classmethod
    def from_history(cls, history):
        data = HistoryOut.model_validate(history).model_dump()
        patient = history.patient
        data.update(
            first_name=patient.first_name,
            last_name=patient.last_name,
            identification=patient.identification,
        )
        return cls(**data)


class HistoryDetail(HistoryWithPatient):
    date_of_birth: date
    gender: GenderEnum

    @classmethod
    def from_history(cls, history):
        base = HistoryWithPatient.from_history(history).model_dump()
        return cls(
            **base,
            date_of_birth=history.patient.date_of_birth,
            gender=history.patient.gender,
        )


class HistoryBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    visit_date: datetime
    reason_for_visit: str
    diagnosis: Optional[str] = None
    doctor_name: Optional[str] = None


class DocumentSearchResult(BaseModel):
    patient: PatientSummary
    histories: List[HistoryOut]
    total: int


class NameSearchGroup(BaseModel):
    patient: PatientSummary
    histories: List[HistoryOut]
    total_histories: int


class NameSearchResult(BaseModel):
    search_term: str
    total_patients: int
    results: List[NameSearchGroup]


class FlexibleSearchGroup(BaseModel):
    patient: PatientSummary
    recent_histories: List[HistoryBrief]
    total_histories: int


class FlexibleSearchResult(BaseModel):
    search_term: str
    total_patients: int
    results: List[FlexibleSearchGroup]
