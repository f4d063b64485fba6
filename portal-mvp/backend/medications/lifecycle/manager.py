"""
MedicationLifecycleManager: 一个患者视图的处方生命周期。

负责：
  - 从 row store 加载该患者全部处方到本地 cache
  - 按 status 分成 active / suspended / history 三个 tab（classify，每次现算）
  - dosage / duration_days 的单行编辑（同一时间只有一个 edit session）
  - continue / discontinue / suspend 状态转换

cache 只在 store 确认写入之后才改，永远不会领先于最后一次成功的远程写。
一个 manager 对应一次挂载的患者视图；换患者就新建一个实例，cache 不共享。
"""

import logging
import math
import re
from dataclasses import replace
from datetime import datetime, time, timezone as dt_timezone
from typing import Optional

from django.utils import timezone

from ..exceptions import (
    BlockError,
    LoadError,
    RemoteRejectedError,
    SaveError,
    StoreError,
    UnknownActionError,
    ValidationError,
)
from .submission import SubmissionPanel
from .types import EditSession, MedicationBuckets, MedicationRecord, MedicationStatus, MedicationTab

logger = logging.getLogger(__name__)

ACTION_TO_STATUS = {
    'continue': MedicationStatus.ACTIVE,
    'discontinue': MedicationStatus.INACTIVE,
    'suspend': MedicationStatus.SUSPENDED,
}

_STATUS_TO_TAB = {
    MedicationStatus.ACTIVE: MedicationTab.ACTIVE,
    MedicationStatus.SUSPENDED: MedicationTab.SUSPENDED,
    MedicationStatus.INACTIVE: MedicationTab.HISTORY,
}

SECONDS_PER_DAY = 24 * 60 * 60

# Medication.duration_days 是 PositiveIntegerField
MAX_DURATION_DAYS = 2147483647

_LEADING_INT_RE = re.compile(r"^\s*([-+]?\d+)")


def _as_utc_datetime(value):
    # 纯日期按 UTC 零点处理
    if isinstance(value, datetime):
        return value if timezone.is_aware(value) else timezone.make_aware(value, dt_timezone.utc)
    return datetime.combine(value, time.min, tzinfo=dt_timezone.utc)


def compute_duration_days(start_date, end_date=None, now=None) -> int:
    """
    ceil((end_date 或 now) - start_date) 天，最小为 0。

    start_date 晚于 now（时钟偏差 / 脏数据）时返回 0，不会是负数。
    """
    start = _as_utc_datetime(start_date)
    if end_date is not None:
        end = _as_utc_datetime(end_date)
    else:
        end = _as_utc_datetime(now if now is not None else timezone.now())
    days = math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)
    return max(days, 0)


def coerce_duration_input(value) -> int:
    """天数输入框的解析：取开头的整数，解析不了就是 0，负数按 0，超出列上限按上限。"""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        days = value
    elif isinstance(value, float):
        days = int(value) if math.isfinite(value) else 0
    else:
        match = _LEADING_INT_RE.match(str(value or ''))
        days = int(match.group(1)) if match else 0
    return min(max(days, 0), MAX_DURATION_DAYS)


def classify(medications) -> MedicationBuckets:
    """纯函数：按 status 分桶（未设置 = active）。三个桶互不相交，并集等于输入。"""
    grouped = {tab: [] for tab in MedicationTab}
    for medication in medications:
        tab = _STATUS_TO_TAB[MedicationStatus.parse(medication.status)]
        grouped[tab].append(medication)
    return MedicationBuckets(
        active=tuple(grouped[MedicationTab.ACTIVE]),
        suspended=tuple(grouped[MedicationTab.SUSPENDED]),
        history=tuple(grouped[MedicationTab.HISTORY]),
    )


class MedicationLifecycleManager:

    def __init__(self, patient_id, store=None, clock=None):
        if store is None:
            from ..store import get_medication_store
            store = get_medication_store()

        self.patient_id = str(patient_id)
        self._store = store
        self._clock = clock or timezone.now
        self._medications: list[MedicationRecord] = []
        self._edit_session: Optional[EditSession] = None
        self._alive = True
        self.loading = False
        self.selected_tab = MedicationTab.ACTIVE
        self.submission = SubmissionPanel(clock=self._clock)

    # ── 只读视图 ───────────────────────────────────────────────────────────

    @property
    def medications(self) -> tuple[MedicationRecord, ...]:
        return tuple(self._medications)

    @property
    def edit_session(self) -> Optional[EditSession]:
        return self._edit_session

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def buckets(self) -> MedicationBuckets:
        return classify(self._medications)

    @property
    def visible_medications(self) -> tuple[MedicationRecord, ...]:
        return self.buckets.for_tab(self.selected_tab)

    def get(self, medication_id) -> MedicationRecord:
        """Raises BlockError(MEDICATION_NOT_FOUND) if the id is not in the cache."""
        return self._medications[self._index_of(medication_id)]

    def _index_of(self, medication_id) -> int:
        medication_id = str(medication_id)
        for index, medication in enumerate(self._medications):
            if medication.id == medication_id:
                return index
        raise BlockError(
            message='Medication not found',
            code='MEDICATION_NOT_FOUND',
            detail={'medication_id': medication_id, 'patient_id': self.patient_id},
            http_status=404,
        )

    def close(self) -> None:
        """视图卸载。之后才返回的远程调用不再改 cache / session。"""
        self._alive = False
        self._edit_session = None
        logger.debug("[MedicationManager] closed patient_id=%s", self.patient_id)

    # ── Load ───────────────────────────────────────────────────────────────

    def load(self) -> list[MedicationRecord]:
        """
        整体替换 cache。失败时 cache 保持原样，抛 LoadError。
        无论成功失败，结束后 loading 都是 False。
        """
        self.loading = True
        try:
            rows = self._store.fetch_medications_for_patient(self.patient_id)
            medications = [MedicationRecord.from_row(row) for row in rows]
        except (StoreError, KeyError, ValueError) as exc:
            logger.error(
                "[MedicationManager] Error fetching medications for patient_id=%s: %s",
                self.patient_id, exc,
            )
            raise LoadError(
                message=f"Could not load medications for patient {self.patient_id}.",
                detail={'patient_id': self.patient_id, 'cause': getattr(exc, 'code', type(exc).__name__)},
            ) from exc
        finally:
            self.loading = False

        if not self._alive:
            logger.debug("[MedicationManager] discarding load result, manager closed")
            return list(self._medications)

        self._medications = medications
        logger.info(
            "[MedicationManager] loaded %d medications for patient_id=%s",
            len(medications), self.patient_id,
        )
        return list(medications)

    # ── Edit session ───────────────────────────────────────────────────────

    def begin_edit(self, medication_id) -> EditSession:
        """打开编辑草稿；已有未保存的 session 会被直接覆盖。"""
        medication = self.get(medication_id)
        self._edit_session = EditSession(
            medication_id=medication.id,
            dosage=medication.dosage,
            duration_days=compute_duration_days(
                medication.start_date, medication.end_date, now=self._clock(),
            ),
        )
        return self._edit_session

    def update_draft(self, dosage=None, duration_days=None) -> EditSession:
        session = self._require_session()
        if dosage is not None:
            session.dosage = str(dosage)
        if duration_days is not None:
            session.duration_days = coerce_duration_input(duration_days)
        return session

    def cancel_edit(self) -> None:
        self._edit_session = None

    def _require_session(self, medication_id=None) -> EditSession:
        session = self._edit_session
        if session is None or (medication_id is not None and session.medication_id != str(medication_id)):
            raise ValidationError(
                message='No edit in progress for this medication.',
                code='NO_EDIT_SESSION',
                detail={'medication_id': str(medication_id) if medication_id is not None else None},
            )
        return session

    def save_edit(self, medication_id, draft: Optional[EditSession] = None) -> MedicationRecord:
        """
        1. update dosage + duration_days
        2. re-fetch 这一行
        3. 字段级合并进 cache，关闭 session

        任何一步失败：cache 不变，session 保持打开，抛 SaveError。
        """
        medication_id = str(medication_id)
        cached = self.get(medication_id)
        if draft is None:
            draft = self._require_session(medication_id)
        fields = draft.as_update()

        logger.info(
            "[MedicationManager] Save changes for medication_id=%s %s", medication_id, fields,
        )

        try:
            self._store.update_medication(medication_id, fields)
        except StoreError as exc:
            logger.error("[MedicationManager] Error updating medication %s: %s", medication_id, exc.message)
            raise SaveError(
                message=f"Could not save changes to medication {medication_id}.",
                detail={'medication_id': medication_id, 'stage': 'update', 'cause': exc.code},
            ) from exc

        try:
            row = self._store.fetch_medication_by_id(medication_id)
            # 先对调用前的 cache 行合并一次，行格式有问题在这里就报 refetch 失败
            refetched = cached.merge_row(row)
        except (StoreError, KeyError, ValueError) as exc:
            logger.error(
                "[MedicationManager] Error fetching updated medication %s: %s", medication_id, exc,
            )
            raise SaveError(
                message=f"Saved medication {medication_id} could not be re-read.",
                detail={
                    'medication_id': medication_id,
                    'stage': 'refetch',
                    'cause': getattr(exc, 'code', type(exc).__name__),
                },
            ) from exc

        if not self._alive:
            return refetched

        # 两次远程调用之间 cache 可能被 load() 替换过，按 id 重新定位后再合并
        index = self._index_of(medication_id)
        current = self._medications[index]
        merged = refetched if current is cached else current.merge_row(row)
        self._medications[index] = merged
        self._edit_session = None
        return merged

    # ── Status transitions ─────────────────────────────────────────────────

    def apply_action(self, action, medication_id) -> MedicationRecord:
        """
        continue → active，discontinue → inactive，suspend → suspended。

        成功后只改 cache 里这一条的 status，不 re-fetch（status 字段 last-writer-wins）。
        """
        new_status = ACTION_TO_STATUS.get(action) if isinstance(action, str) else None
        if new_status is None:
            logger.warning("[MedicationManager] Unknown action: %r", action)
            raise UnknownActionError(
                message=f"Unknown action: {action!r}.",
                detail={'action': action, 'known_actions': list(ACTION_TO_STATUS)},
            )

        medication = self.get(medication_id)

        try:
            self._store.update_medication(medication.id, {'status': new_status.value})
        except StoreError as exc:
            logger.error(
                "[MedicationManager] Error updating medication status %s: %s", medication.id, exc.message,
            )
            raise RemoteRejectedError(
                message=f"Row store rejected status update for medication {medication.id}.",
                detail={'medication_id': medication.id, 'action': action, 'cause': exc.code},
            ) from exc

        logger.info("[MedicationManager] Medication %s updated to %s", medication.name, new_status.value)

        if not self._alive:
            return replace(medication, status=new_status)

        index = self._index_of(medication.id)
        self._medications[index] = replace(self._medications[index], status=new_status)
        return self._medications[index]

    # ── Tabs ───────────────────────────────────────────────────────────────

    def select_tab(self, tab) -> tuple[MedicationRecord, ...]:
        """纯 UI 状态，不触发 reload。"""
        try:
            self.selected_tab = MedicationTab(tab)
        except ValueError:
            raise ValidationError(
                message=f"Unknown tab: {tab!r}.",
                code='UNKNOWN_TAB',
                detail={'known_tabs': [t.value for t in MedicationTab]},
            ) from None
        return self.visible_medications
