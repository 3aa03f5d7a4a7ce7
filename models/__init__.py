"""
Models Package

Pydantic DTOs shared by the services, the resume repository and the web layer.
"""

from models.redirect_params import RedirectParamsDTO
from models.resume_record import ResumeRecordDTO, StudentInfoDTO
from models.snapshot import SnapshotUpdate, StatusSnapshot
from models.status_report import RawStatusReport
from models.status_view import PaymentStatusViewDTO

__all__ = [
    'RedirectParamsDTO',
    'ResumeRecordDTO',
    'StudentInfoDTO',
    'SnapshotUpdate',
    'StatusSnapshot',
    'RawStatusReport',
    'PaymentStatusViewDTO',
]
