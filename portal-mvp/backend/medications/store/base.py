"""
BaseMedicationStore: 所有 row store 实现的抽象基类。

Manager 只通过这三个方法和外部数据打交道，完全不知道背后是本地 ORM 还是托管后端的 REST API。

每个新 store 只需：
1. 继承 BaseMedicationStore
2. 实现三个方法，失败时统一抛 StoreError
3. 在 factory.py 的 _build_registry() 注册一行
"""

from abc import ABC, abstractmethod
from typing import Any

from ..exceptions import StoreError

# 本工作流里允许写入的列；其余字段由外部处方流程维护
WRITABLE_FIELDS = frozenset({'dosage', 'duration_days', 'status'})


class BaseMedicationStore(ABC):

    @abstractmethod
    def fetch_medications_for_patient(self, patient_id: str) -> list[dict[str, Any]]:
        """
        返回该患者所有 medication row，带 join 的 prescribed_by_user: {"name": ...}（可为 None）。
        顺序由 store 决定。

        Raises:
            StoreError
        """

    @abstractmethod
    def update_medication(self, medication_id: str, fields: dict[str, Any]) -> None:
        """
        按主键做部分更新。

        Raises:
            StoreError
        """

    @abstractmethod
    def fetch_medication_by_id(self, medication_id: str) -> dict[str, Any]:
        """
        select * 单行，不 join。

        Raises:
            StoreError
        """

    def _check_writable(self, medication_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise StoreError(
                message=f"Fields not writable through this workflow: {sorted(unknown)}.",
                code='FIELD_NOT_WRITABLE',
                detail={'medication_id': str(medication_id), 'fields': sorted(unknown)},
            )
