"""
Response serializers: lifecycle 对象 → JSON-able dict。

只负责「输出格式化」，不做解析或校验。展示规则和处方卡片一致：
  处方医生缺失 → 'Unknown'，indication 缺失 → 'N/A'，日期 en-US 短格式（Jan 5, 2024）。
"""

from .lifecycle.submission import SUCCESS_BANNER_SECONDS, SUCCESS_MESSAGE


def format_date(value):
    """date → 'Jan 5, 2024'。"""
    if value is None:
        return None
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def serialize_medication(medication):
    period = format_date(medication.start_date)
    if medication.end_date:
        period = f"{period} - {format_date(medication.end_date)}"

    return {
        'id': medication.id,
        'name': medication.name,
        'dosage': medication.dosage,
        'frequency': medication.frequency,
        'route': medication.route,
        'indications': medication.indications or 'N/A',
        'duration_days': medication.duration_days,
        'status': medication.status.value,
        'start_date': medication.start_date.isoformat(),
        'end_date': medication.end_date.isoformat() if medication.end_date else None,
        'prescription_period': period,
        'prescribed_by': medication.prescribed_by,
        'prescribed_by_name': medication.prescribed_by_name or 'Unknown',
    }


def serialize_edit_session(session):
    return {
        'medication_id': session.medication_id,
        'dosage': session.dosage,
        'duration_days': session.duration_days,
    }


def serialize_medication_tabs(manager, error=None):
    """
    当前 tab 的列表 + 三个 tab 的计数。

    error 不为空时表示加载失败：列表为空，前端照常渲染，只在行内提示。
    """
    buckets = manager.buckets
    response = {
        'patient_id': manager.patient_id,
        'loading': manager.loading,
        'selected_tab': manager.selected_tab.value,
        'counts': buckets.counts(),
        'medications': [serialize_medication(m) for m in buckets.for_tab(manager.selected_tab)],
    }
    if error is not None:
        response['error'] = {'code': error.code, 'message': error.message}
    return response


def serialize_submission(receipt):
    return {
        'mrn': receipt.mrn,
        'hospital': receipt.hospital,
        'message': SUCCESS_MESSAGE,
        'submitted_at': receipt.submitted_at.isoformat(),
        'banner_expires_at': receipt.banner_expires_at.isoformat(),
        'banner_ttl_seconds': SUCCESS_BANNER_SECONDS,
    }
