import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, JSON, String, Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from clinic_service.db import Base


def utcnow():
    return datetime.now(timezone.utc)


class RoleEnum(str, enum.Enum):
    admin = "admin"
    doctor = "doctor"
    recepcionista = "recepcionista"
    # legacy value, only reachable through public signup
    nurse = "nurse"


class DocumentTypeEnum(str, enum.Enum):
    CC = "CC"
    CE = "CE"
    TI = "TI"
    PASAPORTE = "PASAPORTE"
    OTRO = "OTRO"


class GenderEnum(str, enum.Enum):
    M = "M"
    F = "F"
    Otro = "Otro"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(RoleEnum, name="roleenum", values_callable=_enum_values),
        nullable=False,
        default=RoleEnum.recepcionista,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    identification = Column(String(20), unique=True, nullable=False)
    document_type = Column(
        Enum(DocumentTypeEnum, name="documenttypeenum", values_callable=_enum_values),
        nullable=False,
        default=DocumentTypeEnum.CC,
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(
        Enum(GenderEnum, name="genderenum", values_callable=_enum_values),
        nullable=False,
    )
    phone = Column(String(20))
    email = Column(String(100))
    address = Column(Text)
    emergency_contact = Column(String(100))
    emergency_phone = Column(String(20))
    blood_type = Column(String(5))
    allergies = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    creator = relationship("User", lazy="joined")
    histories = relationship(
        "ClinicalHistory",
        back_populates="patient",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def created_by_name(self):
        return self.creator.name if self.creator else None


class ClinicalHistory(Base):
    __tablename__ = "clinical_histories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    visit_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    reason_for_visit = Column(Text, nullable=False)
    symptoms = Column(Text)
    diagnosis = Column(Text)
    treatment = Column(Text)
    prescriptions = Column(Text)
    observations = Column(Text)
    vital_signs = Column(JSON(none_as_null=True))
    next_appointment = Column(Date)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    patient = relationship("Patient", back_populates="histories", lazy="joined")
    doctor = relationship("User", lazy="joined")

    @property
    def doctor_name(self):
        return self.doctor.name if self.doctor else None
