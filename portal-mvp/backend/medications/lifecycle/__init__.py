from .manager import MedicationLifecycleManager, classify, compute_duration_days
from .submission import HOSPITALS, SubmissionPanel
from .types import EditSession, MedicationBuckets, MedicationRecord, MedicationStatus, MedicationTab

__all__ = [
    "MedicationLifecycleManager",
    "classify",
    "compute_duration_days",
    "SubmissionPanel",
    "HOSPITALS",
    "EditSession",
    "MedicationBuckets",
    "MedicationRecord",
    "MedicationStatus",
    "MedicationTab",
]
