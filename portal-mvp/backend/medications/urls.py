from django.urls import path
from .views import (
    HospitalListView,
    MedicationActionView,
    MedicationDetailView,
    MedicationEditView,
    MedicationListView,
    PrescriptionSubmitView,
)

urlpatterns = [
    path('patients/<str:patient_id>/medications/', MedicationListView.as_view(), name='medication-list'),
    path('patients/<str:patient_id>/medications/<str:medication_id>/', MedicationDetailView.as_view(), name='medication-detail'),
    path('patients/<str:patient_id>/medications/<str:medication_id>/edit/', MedicationEditView.as_view(), name='medication-edit'),
    path('patients/<str:patient_id>/medications/<str:medication_id>/actions/', MedicationActionView.as_view(), name='medication-action'),
    path('prescriptions/hospitals/', HospitalListView.as_view(), name='hospital-list'),
    path('prescriptions/submit/', PrescriptionSubmitView.as_view(), name='prescription-submit'),
]
