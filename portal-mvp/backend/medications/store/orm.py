"""
DjangoMedicationStore: 直接查本地 medications / users 表。

相当于托管后端 SDK 的
  .from('medications').select('*, prescribed_by_user:users(name)').eq('patient_id', id)
的 ORM 版本。
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.utils import timezone

from ..exceptions import StoreError
from ..models import Medication
from .base import BaseMedicationStore


def medication_to_row(medication, include_prescriber=True):
    """ORM 对象 → store row dict，日期用 ISO 字符串，和 REST store 的返回一致。"""
    row = {
        'id': str(medication.id),
        'patient_id': str(medication.patient_id),
        'name': medication.name,
        'dosage': medication.dosage,
        'frequency': medication.frequency,
        'route': medication.route,
        'indications': medication.indications,
        'start_date': medication.start_date.isoformat(),
        'end_date': medication.end_date.isoformat() if medication.end_date else None,
        'duration_days': medication.duration_days,
        'status': medication.status,
        'discontinuation_reason': medication.discontinuation_reason,
        'prescribed_by': str(medication.prescribed_by_id) if medication.prescribed_by_id else None,
    }
    if include_prescriber:
        prescriber = medication.prescribed_by
        row['prescribed_by_user'] = {'name': prescriber.name} if prescriber else None
    return row


class DjangoMedicationStore(BaseMedicationStore):

    def fetch_medications_for_patient(self, patient_id):
        try:
            medications = list(
                Medication.objects.filter(patient_id=patient_id).select_related('prescribed_by')
            )
        except (DjangoValidationError, ValueError, OverflowError, DatabaseError) as exc:
            raise StoreError(
                message=f"Could not fetch medications for patient {patient_id}: {exc}",
                detail={'patient_id': str(patient_id)},
            ) from exc
        return [medication_to_row(m) for m in medications]

    def update_medication(self, medication_id, fields):
        self._check_writable(medication_id, fields)
        try:
            updated = Medication.objects.filter(id=medication_id).update(**fields, updated_at=timezone.now())
        except (DjangoValidationError, ValueError, OverflowError, DatabaseError) as exc:
            raise StoreError(
                message=f"Could not update medication {medication_id}: {exc}",
                detail={'medication_id': str(medication_id)},
            ) from exc

        if updated == 0:
            raise StoreError(
                message=f"Medication {medication_id} not found",
                code='MEDICATION_NOT_FOUND',
                detail={'medication_id': str(medication_id)},
            )

    def fetch_medication_by_id(self, medication_id):
        try:
            medication = Medication.objects.get(id=medication_id)
        except Medication.DoesNotExist as exc:
            raise StoreError(
                message=f"Medication {medication_id} not found",
                code='MEDICATION_NOT_FOUND',
                detail={'medication_id': str(medication_id)},
            ) from exc
        except (DjangoValidationError, ValueError, OverflowError, DatabaseError) as exc:
            raise StoreError(
                message=f"Could not fetch medication {medication_id}: {exc}",
                detail={'medication_id': str(medication_id)},
            ) from exc
        return medication_to_row(medication, include_prescriber=False)
