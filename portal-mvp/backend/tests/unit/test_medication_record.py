"""
MedicationRecord 与 store row 之间的转换，以及 save 用的字段级合并。
"""
from datetime import date

import pytest

from medications.lifecycle.types import MedicationRecord, MedicationStatus
from tests.conftest import make_row


class TestMedicationStatus:

    @pytest.mark.parametrize('raw', [None, '', 'active', MedicationStatus.ACTIVE])
    def test_parse_defaults_to_active(self, raw):
        assert MedicationStatus.parse(raw) is MedicationStatus.ACTIVE

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError):
            MedicationStatus.parse('archived')


class TestFromRow:

    def test_joined_row(self):
        record = MedicationRecord.from_row(make_row('a', status='suspended', end_date='2024-02-01'))

        assert record.id == 'a'
        assert record.status is MedicationStatus.SUSPENDED
        assert record.start_date == date(2024, 1, 1)
        assert record.end_date == date(2024, 2, 1)
        assert record.prescribed_by == 'u1'
        assert record.prescribed_by_name == 'Dr. Who'

    def test_missing_join_and_timestamps(self):
        row = make_row('a', prescribed_by_user=None, start_date='2024-01-01T08:30:00+00:00')
        record = MedicationRecord.from_row(row)

        assert record.prescribed_by_name is None
        assert record.start_date == date(2024, 1, 1)

    def test_to_row_round_trip(self):
        record = MedicationRecord.from_row(make_row('a', status='inactive'))
        assert MedicationRecord.from_row(record.to_row()) == record


class TestMergeRow:

    def test_only_present_fields_overwritten(self):
        record = MedicationRecord.from_row(make_row('a', indications='Pain'))
        merged = record.merge_row({'id': 'a', 'dosage': '50mg', 'duration_days': 3})

        assert merged.dosage == '50mg'
        assert merged.duration_days == 3
        assert merged.indications == 'Pain'
        assert merged.prescribed_by_name == 'Dr. Who'

    def test_new_join_replaces_name(self):
        record = MedicationRecord.from_row(make_row('a'))
        merged = record.merge_row({'prescribed_by_user': {'name': 'Dr. House'}})
        assert merged.prescribed_by_name == 'Dr. House'
