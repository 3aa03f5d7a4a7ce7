from datetime import datetime, timezone

from pydantic import BaseModel, Field


class StudentInfoDTO(BaseModel):
    name: str
    id: str
    email: str
    phone: str | None = None
    class_name: str | None = Field(default=None, alias="class")
    section: str | None = None

    model_config = {"populate_by_name": True}


class ResumeRecordDTO(BaseModel):
    """
    Minimal record persisted when a payment is created, so status tracking
    can resume after the payer comes back from the gateway.

    Keyed by ``provider_order_id`` (the provider collect request id).
    """
    provider_order_id: str
    server_order_id: str | None = None
    collect_request_id: str | None = None
    custom_order_id: str | None = None
    student_info: StudentInfoDTO | None = None
    fee_type: str | None = None
    amount: float = Field(default=0.0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
