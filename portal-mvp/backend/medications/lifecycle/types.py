"""
Lifecycle 层的标准数据结构。

Manager 只认识 MedicationRecord，不认识 ORM model 也不认识 REST 返回的原始 JSON。
store 返回的 row（dict）在这里统一转换，所以不同 store 对 NULL / 缺字段的处理差异
不会泄漏到业务逻辑里。
"""

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Any, Optional


class MedicationStatus(str, Enum):
    """
    处方状态。ACTIVE 是默认值：store 里 status 为 NULL / 缺失 / 空字符串都解析成 ACTIVE。
    """

    ACTIVE = 'active'
    INACTIVE = 'inactive'
    SUSPENDED = 'suspended'

    @classmethod
    def parse(cls, value) -> 'MedicationStatus':
        if value is None or value == '':
            return cls.ACTIVE
        if isinstance(value, cls):
            return value
        return cls(value)


class MedicationTab(str, Enum):
    ACTIVE = 'active'
    SUSPENDED = 'suspended'
    HISTORY = 'history'


def _parse_date(value) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    # REST store 返回 "2024-01-01" 或 "2024-01-01T00:00:00+00:00"
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class MedicationRecord:
    id: str
    name: str
    dosage: str
    frequency: str
    start_date: date
    patient_id: Optional[str] = None
    route: str = 'Other'
    indications: Optional[str] = None
    end_date: Optional[date] = None
    duration_days: int = 0
    status: MedicationStatus = MedicationStatus.ACTIVE
    discontinuation_reason: Optional[str] = None
    prescribed_by: Optional[str] = None
    prescribed_by_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> 'MedicationRecord':
        """Row store 的一行（可带 join 的 prescribed_by_user）→ MedicationRecord。"""
        prescriber = row.get('prescribed_by_user') or {}
        prescribed_by = row.get('prescribed_by')
        patient_id = row.get('patient_id')
        return cls(
            id=str(row['id']),
            patient_id=str(patient_id) if patient_id is not None else None,
            name=row.get('name') or '',
            dosage=row.get('dosage') or '',
            frequency=row.get('frequency') or '',
            route=row.get('route') or 'Other',
            indications=row.get('indications'),
            start_date=_parse_date(row['start_date']),
            end_date=_parse_date(row.get('end_date')),
            duration_days=int(row.get('duration_days') or 0),
            status=MedicationStatus.parse(row.get('status')),
            discontinuation_reason=row.get('discontinuation_reason'),
            prescribed_by=str(prescribed_by) if prescribed_by is not None else None,
            prescribed_by_name=prescriber.get('name'),
        )

    def to_row(self) -> dict[str, Any]:
        """反向转换，形状与 store 的 join 查询结果一致。"""
        row = {f.name: getattr(self, f.name) for f in fields(self) if f.name != 'prescribed_by_name'}
        row['status'] = self.status.value
        row['prescribed_by_user'] = (
            {'name': self.prescribed_by_name} if self.prescribed_by_name is not None else None
        )
        return row

    def merge_row(self, row: dict[str, Any]) -> 'MedicationRecord':
        """
        字段级合并：只覆盖 row 里出现的字段，其余保留当前值。

        re-fetch 用的是 select *（不 join），所以没有 prescribed_by_user 时沿用已缓存的名字。
        """
        merged = self.to_row()
        merged.update(row)
        if not row.get('prescribed_by_user'):
            merged['prescribed_by_user'] = self.to_row()['prescribed_by_user']
        return MedicationRecord.from_row(merged)


@dataclass
class EditSession:
    """
    当前唯一的编辑草稿。

    一个 manager 同时只有一个 session；打开新的会直接覆盖旧的未保存草稿。
    """

    medication_id: str
    dosage: str
    duration_days: int = 0

    def as_update(self) -> dict[str, Any]:
        return {'dosage': self.dosage, 'duration_days': self.duration_days}


@dataclass(frozen=True)
class MedicationBuckets:
    """按 status 划分的三个 tab。由 classify() 从 cache 计算，从不单独保存。"""

    active: tuple[MedicationRecord, ...] = field(default_factory=tuple)
    suspended: tuple[MedicationRecord, ...] = field(default_factory=tuple)
    history: tuple[MedicationRecord, ...] = field(default_factory=tuple)

    def for_tab(self, tab: MedicationTab) -> tuple[MedicationRecord, ...]:
        return {
            MedicationTab.ACTIVE: self.active,
            MedicationTab.SUSPENDED: self.suspended,
            MedicationTab.HISTORY: self.history,
        }[MedicationTab(tab)]

    def counts(self) -> dict[str, int]:
        return {
            MedicationTab.ACTIVE.value: len(self.active),
            MedicationTab.SUSPENDED.value: len(self.suspended),
            MedicationTab.HISTORY.value: len(self.history),
        }
