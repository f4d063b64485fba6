"""
HTTP 层。每个请求相当于一次挂载的患者视图：新建 manager → load → 做一个操作 → 序列化。

View 只 raise，不 catch（唯一例外：列表页的 LoadError 降级成空列表），
错误格式由 exception_handler.unified_exception_handler 统一处理。
"""

from django.http import JsonResponse
from rest_framework.views import APIView

from .exceptions import LoadError, ValidationError
from .lifecycle import HOSPITALS, MedicationLifecycleManager, SubmissionPanel
from .serializers import (
    serialize_edit_session,
    serialize_medication,
    serialize_medication_tabs,
    serialize_submission,
)
from .store import get_medication_store


def build_manager(patient_id):
    return MedicationLifecycleManager(patient_id, store=get_medication_store())


def _request_body(request):
    data = request.data
    if not isinstance(data, dict):
        raise ValidationError(
            message='Request body must be a JSON object',
            detail={'received': type(data).__name__},
        )
    return data


class MedicationListView(APIView):
    """GET /api/patients/<patient_id>/medications/?tab=active|suspended|history"""

    def get(self, request, patient_id):
        manager = build_manager(patient_id)
        manager.select_tab(request.query_params.get('tab', 'active'))

        try:
            manager.load()
        except LoadError as exc:
            # 加载失败不阻塞页面：空列表 + 行内错误
            return JsonResponse(serialize_medication_tabs(manager, error=exc))

        return JsonResponse(serialize_medication_tabs(manager))


class MedicationEditView(APIView):
    """GET /api/patients/<patient_id>/medications/<medication_id>/edit/ - 编辑草稿初始值"""

    def get(self, request, patient_id, medication_id):
        manager = build_manager(patient_id)
        manager.load()
        session = manager.begin_edit(medication_id)
        return JsonResponse({'edit_session': serialize_edit_session(session)})


class MedicationDetailView(APIView):
    """PATCH /api/patients/<patient_id>/medications/<medication_id>/ - 保存 dosage / duration_days"""

    def patch(self, request, patient_id, medication_id):
        data = _request_body(request)

        manager = build_manager(patient_id)
        manager.load()
        manager.begin_edit(medication_id)
        manager.update_draft(
            dosage=data.get('dosage'),
            duration_days=data.get('duration_days'),
        )
        medication = manager.save_edit(medication_id)

        return JsonResponse({'medication': serialize_medication(medication)})


class MedicationActionView(APIView):
    """POST /api/patients/<patient_id>/medications/<medication_id>/actions/ - continue / discontinue / suspend"""

    def post(self, request, patient_id, medication_id):
        data = _request_body(request)

        manager = build_manager(patient_id)
        manager.load()
        medication = manager.apply_action(data.get('action'), medication_id)

        return JsonResponse({
            'medication': serialize_medication(medication),
            'counts': manager.buckets.counts(),
        })


class HospitalListView(APIView):
    """GET /api/prescriptions/hospitals/"""

    def get(self, request):
        return JsonResponse({'hospitals': list(HOSPITALS)})


class PrescriptionSubmitView(APIView):
    """POST /api/prescriptions/submit/ - 本地确认，不持久化"""

    def post(self, request):
        data = _request_body(request)

        panel = SubmissionPanel()
        panel.open()
        panel.set_mrn(data.get('mrn'))
        panel.set_hospital(data.get('hospital'))
        receipt = panel.confirm()

        return JsonResponse(serialize_submission(receipt))
