from .base import BaseMedicationStore, WRITABLE_FIELDS
from .factory import get_medication_store

__all__ = ["BaseMedicationStore", "WRITABLE_FIELDS", "get_medication_store"]
