"""
"Submit prescription" 侧边面板：MRN + 医院。

只做本地必填校验和一个 3 秒自动消失的成功提示，不做任何持久化，也不碰处方 cache。
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.utils import timezone

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

HOSPITALS = ('City Hospital', 'County General', 'Metro Clinic')

SUCCESS_BANNER_SECONDS = 3
SUCCESS_MESSAGE = 'Prescription submitted successfully!'


@dataclass(frozen=True)
class SubmissionReceipt:
    mrn: str
    hospital: str
    submitted_at: datetime
    banner_expires_at: datetime


class SubmissionPanel:

    def __init__(self, clock=None):
        self._clock = clock or timezone.now
        self.is_open = False
        self.mrn = ''
        self.hospital = ''
        self._banner_expires_at = None

    def open(self):
        self.is_open = True

    def cancel(self):
        # 只是收起面板，已填的值保留
        self.is_open = False

    def set_mrn(self, mrn):
        self.mrn = mrn or ''

    def set_hospital(self, hospital):
        self.hospital = hospital or ''

    def validate(self) -> list[dict]:
        errors = []
        if not isinstance(self.mrn, str):
            errors.append({'field': 'mrn', 'message': 'MRN must be text.'})
        elif not self.mrn:
            errors.append({'field': 'mrn', 'message': 'MRN is required.'})
        if not isinstance(self.hospital, str) or not self.hospital:
            errors.append({'field': 'hospital', 'message': 'Select a hospital.'})
        elif self.hospital not in HOSPITALS:
            errors.append({'field': 'hospital', 'message': f"Unknown hospital: {self.hospital!r}."})
        return errors

    def confirm(self) -> SubmissionReceipt:
        """校验失败抛 ValidationError，面板保持打开、不显示 banner。"""
        errors = self.validate()
        if errors:
            raise ValidationError(
                message='Please enter MRN and select a hospital.',
                code='SUBMISSION_INCOMPLETE',
                detail={'errors': errors, 'hospitals': list(HOSPITALS)},
            )

        now = self._clock()
        logger.info("[SubmissionPanel] Submitted MRN=%s hospital=%s", self.mrn, self.hospital)

        self.is_open = False
        self._banner_expires_at = now + timedelta(seconds=SUCCESS_BANNER_SECONDS)
        return SubmissionReceipt(
            mrn=self.mrn,
            hospital=self.hospital,
            submitted_at=now,
            banner_expires_at=self._banner_expires_at,
        )

    @property
    def banner_visible(self) -> bool:
        return self._banner_expires_at is not None and self._clock() < self._banner_expires_at

    @property
    def banner_message(self):
        return SUCCESS_MESSAGE if self.banner_visible else None
