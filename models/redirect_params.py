from pydantic import BaseModel, ConfigDict

from models.status_report import RawStatusReport


class RedirectParamsDTO(BaseModel):
    """Query parameters the gateway appends when sending the payer back."""
    model_config = ConfigDict(frozen=True)

    order_identifier: str | None = None
    status: str | None = None
    capture_status: str | None = None
    amount: str | None = None

    @property
    def has_status(self) -> bool:
        return bool(self.status)

    def as_report(self) -> RawStatusReport:
        """Redirect fields as a status report, for the normalizer and resolver."""
        return RawStatusReport.from_payload({
            "status": self.status,
            "capture_status": self.capture_status,
            "amount": self.amount,
        })
