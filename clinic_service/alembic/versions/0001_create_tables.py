"""create users, patients and clinical_histories tables"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(100), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum('admin', 'doctor', 'recepcionista', 'nurse', name='roleenum'),
                  nullable=False, server_default='recepcionista'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'patients',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('identification', sa.String(20), nullable=False, unique=True),
        sa.Column('document_type', sa.Enum('CC', 'CE', 'TI', 'PASAPORTE', 'OTRO', name='documenttypeenum'),
                  nullable=False, server_default='CC'),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('gender', sa.Enum('M', 'F', 'Otro', name='genderenum'), nullable=False),
        sa.Column('phone', sa.String(20)),
        sa.Column('email', sa.String(100)),
        sa.Column('address', sa.Text()),
        sa.Column('emergency_contact', sa.String(100)),
        sa.Column('emergency_phone', sa.String(20)),
        sa.Column('blood_type', sa.String(5)),
        sa.Column('allergies', sa.Text()),
        sa.Column('created_by', sa.Integer, sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'clinical_histories',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('patient_id', sa.Integer, sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('doctor_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('visit_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('reason_for_visit', sa.Text(), nullable=False),
        sa.Column('symptoms', sa.Text()),
        sa.Column('diagnosis', sa.Text()),
        sa.Column('treatment', sa.Text()),
        sa.Column('prescriptions', sa.Text()),
        sa.Column('observations', sa.Text()),
        sa.Column('vital_signs', sa.JSON()),
        sa.Column('next_appointment', sa.Date()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_clinical_histories_patient_id', 'clinical_histories', ['patient_id'])


def downgrade():
    op.drop_index('ix_clinical_histories_patient_id', table_name='clinical_histories')
    op.drop_table('clinical_histories')
    op.drop_table('patients')
    op.drop_table('users')
    sa.Enum(name='genderenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='documenttypeenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='roleenum').drop(op.get_bind(), checkfirst=True)
