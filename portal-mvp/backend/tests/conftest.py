"""
Shared fixtures for all tests.

factory-boy factories 和 FakeMedicationStore 放在这里，unit/ 和 integration/ 都能 import。
"""
import copy
import pytest
from datetime import date, datetime, timezone as dt_timezone
from django.test import Client

import factory
from medications.exceptions import StoreError
from medications.models import Patient, Clinician, Medication
from medications.store.base import BaseMedicationStore


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class PatientFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Patient

    mrn = factory.Sequence(lambda n: f'M{100000 + n}')
    name = 'John Doe'
    date_of_birth = date(1990, 1, 15)


class ClinicianFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Clinician

    email = factory.Sequence(lambda n: f'doctor{n}@hospital.test')
    name = 'Dr. Smith'


class MedicationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Medication

    patient = factory.SubFactory(PatientFactory)
    prescribed_by = factory.SubFactory(ClinicianFactory)
    name = 'Amoxicillin'
    dosage = '500mg'
    frequency = 'Every 8 hours'
    route = 'Oral'
    indications = 'Bacterial infection'
    start_date = date(2024, 1, 1)
    duration_days = 10
    status = None


# ---------------------------------------------------------------------------
# Fake row store
# ---------------------------------------------------------------------------

def make_row(id, status=None, **overrides):
    """store 形状的一行（带 join 的 prescribed_by_user）。"""
    row = {
        'id': id,
        'patient_id': 'p1',
        'name': f'Drug {id}',
        'dosage': '10mg',
        'frequency': 'Once daily',
        'route': 'Oral',
        'indications': None,
        'start_date': '2024-01-01',
        'end_date': None,
        'duration_days': 0,
        'status': status,
        'discontinuation_reason': None,
        'prescribed_by': 'u1',
        'prescribed_by_user': {'name': 'Dr. Who'},
    }
    row.update(overrides)
    return row


class FakeMedicationStore(BaseMedicationStore):
    """
    内存版 row store。

    calls 记录每一次远程调用；fail_* 设为 True 时对应调用抛 StoreError。
    on_* 回调在调用返回前执行（用来模拟调用期间视图被卸载）。
    """

    def __init__(self, rows=None):
        self.rows = {row['id']: copy.deepcopy(row) for row in (rows or [])}
        self.calls = []
        self.fail_fetch = False
        self.fail_update = False
        self.fail_fetch_one = False
        self.on_fetch = None
        self.on_update = None

    def fetch_medications_for_patient(self, patient_id):
        self.calls.append(('fetch_medications_for_patient', patient_id))
        if self.fail_fetch:
            raise StoreError('fetch failed')
        result = [copy.deepcopy(row) for row in self.rows.values() if row['patient_id'] == patient_id]
        if self.on_fetch:
            self.on_fetch()
        return result

    def update_medication(self, medication_id, fields):
        self.calls.append(('update_medication', medication_id, dict(fields)))
        self._check_writable(medication_id, fields)
        if self.fail_update:
            raise StoreError('update rejected')
        self.rows[medication_id].update(fields)
        if self.on_update:
            self.on_update()

    def fetch_medication_by_id(self, medication_id):
        self.calls.append(('fetch_medication_by_id', medication_id))
        if self.fail_fetch_one:
            raise StoreError('fetch one failed')
        row = copy.deepcopy(self.rows[medication_id])
        row.pop('prescribed_by_user', None)  # select * 不 join
        return row

    def remote_calls(self, name):
        return [c for c in self.calls if c[0] == name]


class FixedClock:
    """可拨动的时钟，替代 timezone.now。"""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def api_client():
    """Django test client for integration tests."""
    return Client()


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 11, tzinfo=dt_timezone.utc))


@pytest.fixture
def store():
    return FakeMedicationStore([
        make_row('a'),
        make_row('b', status='suspended', dosage='20mg'),
        make_row('c', status='inactive', end_date='2024-01-05'),
    ])
