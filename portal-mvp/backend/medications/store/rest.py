"""
RestMedicationStore: 托管后端的 PostgREST 风格 HTTP API。

环境变量：ROW_STORE_URL、ROW_STORE_API_KEY（见 config/settings.py）

请求形状：
  GET   /rest/v1/medications?select=*,prescribed_by_user:users(name)&patient_id=eq.<id>
  PATCH /rest/v1/medications?id=eq.<id>                      body: {部分字段}
  GET   /rest/v1/medications?select=*&id=eq.<id>             Accept: application/vnd.pgrst.object+json

不设超时、不重试：失败就是 store 报告的那样，统一转成 StoreError。
"""

import requests
from django.conf import settings

from ..exceptions import StoreError
from .base import BaseMedicationStore

SINGLE_OBJECT = 'application/vnd.pgrst.object+json'


class RestMedicationStore(BaseMedicationStore):

    TABLE = 'medications'
    JOINED_SELECT = '*,prescribed_by_user:users(name)'

    def __init__(self, base_url=None, api_key=None, session=None):
        base_url = base_url or getattr(settings, 'ROW_STORE_URL', '')
        api_key = api_key or getattr(settings, 'ROW_STORE_API_KEY', '')
        if not base_url:
            raise ValueError("ROW_STORE_URL is not set")
        if not api_key:
            raise ValueError("ROW_STORE_API_KEY is not set")

        self._endpoint = f"{base_url.rstrip('/')}/rest/v1/{self.TABLE}"
        self._session = session or requests.Session()
        self._session.headers.update({
            'apikey': api_key,
            'Authorization': f'Bearer {api_key}',
        })

    def _request(self, method, params, action, detail, **kwargs):
        try:
            response = self._session.request(method, self._endpoint, params=params, **kwargs)
        except requests.RequestException as exc:
            raise StoreError(
                message=f"Row store unreachable while trying to {action}: {exc}",
                detail=detail,
            ) from exc

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            raise StoreError(
                message=f"Row store rejected request to {action} (HTTP {response.status_code})",
                detail={**detail, 'status_code': response.status_code, 'body': body},
            )
        return response

    def _json(self, response, action, detail):
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(
                message=f"Row store returned a non-JSON body while trying to {action}",
                detail=detail,
            ) from exc

    def fetch_medications_for_patient(self, patient_id):
        response = self._request(
            'GET',
            params={'select': self.JOINED_SELECT, 'patient_id': f'eq.{patient_id}'},
            action='fetch medications',
            detail={'patient_id': str(patient_id)},
        )
        return self._json(response, 'fetch medications', {'patient_id': str(patient_id)})

    def update_medication(self, medication_id, fields):
        self._check_writable(medication_id, fields)
        self._request(
            'PATCH',
            params={'id': f'eq.{medication_id}'},
            action='update medication',
            detail={'medication_id': str(medication_id)},
            json=fields,
            headers={'Prefer': 'return=minimal'},
        )

    def fetch_medication_by_id(self, medication_id):
        response = self._request(
            'GET',
            params={'select': '*', 'id': f'eq.{medication_id}'},
            action='fetch medication',
            detail={'medication_id': str(medication_id)},
            headers={'Accept': SINGLE_OBJECT},
        )
        return self._json(response, 'fetch medication', {'medication_id': str(medication_id)})
