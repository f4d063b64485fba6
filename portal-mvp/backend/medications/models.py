import uuid
from django.db import models


class Patient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    mrn = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=200)
    date_of_birth = models.DateField()
    blood_type = models.CharField(max_length=5, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'


class Clinician(models.Model):
    """Portal user; the prescriber display name is resolved from here."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'users'


class Medication(models.Model):
    ROUTE_CHOICES = [
        ('Oral', 'Oral'),
        ('Injection', 'Injection'),
        ('Topical', 'Topical'),
        ('IV', 'IV'),
        ('Inhalation', 'Inhalation'),
        ('Other', 'Other'),
    ]

    # NULL status 等同于 active
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('suspended', 'Suspended'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='medications')
    name = models.CharField(max_length=200)
    dosage = models.CharField(max_length=100)
    frequency = models.CharField(max_length=100)
    route = models.CharField(max_length=20, choices=ROUTE_CHOICES, default='Oral')
    indications = models.TextField(blank=True, null=True)
    start_date = models.DateField()
    end_date = models.DateField(blank=True, null=True)
    duration_days = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, blank=True, null=True)
    discontinuation_reason = models.TextField(blank=True, null=True)
    prescribed_by = models.ForeignKey(
        Clinician,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='prescriptions',
        db_column='prescribed_by',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'medications'
