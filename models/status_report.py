from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Aliased keys in lookup order; the first non-empty value wins
STATUS_KEYS = ("status", "payment_status", "gateway_status")
CAPTURE_STATUS_KEYS = ("capture_status", "captureStatus")
CUSTOM_ORDER_ID_KEYS = ("custom_order_id", "customOrderId")
PAYMENT_MODE_KEYS = ("payment_mode", "paymentMode", "payment_method")
PAYMENT_DETAILS_KEYS = ("payment_details", "paymentDetails")

# Placeholder some backends send instead of omitting the payment mode
PAYMENT_MODE_PLACEHOLDERS = {"", "N/A", "NA"}


def _first_text(data: dict, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


class RawStatusReport(BaseModel):
    """
    Typed view over an untyped status payload (redirect query or lookup response).

    Only the fields that need alias resolution are lifted out; the original
    mapping stays available as ``payload`` for amount resolution.
    """
    model_config = ConfigDict(frozen=True)

    status: str | None = None
    capture_status: str | None = None
    custom_order_id: str | None = None
    payment_mode: str | None = None
    payment_details: Any = None
    payload: dict = Field(default_factory=dict, repr=False)

    @model_validator(mode="before")
    @classmethod
    def _resolve_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if "payload" in data and set(data) <= set(cls.model_fields):
            # Already in canonical shape (model_copy / explicit construction)
            return data

        payment_mode = _first_text(data, PAYMENT_MODE_KEYS)
        if payment_mode is None and isinstance(data.get("details"), dict):
            payment_mode = _first_text(data["details"], ("payment_methods", "payment_mode"))
        if payment_mode is not None and payment_mode.upper() in PAYMENT_MODE_PLACEHOLDERS:
            payment_mode = None

        details = None
        for key in PAYMENT_DETAILS_KEYS:
            if data.get(key) not in (None, ""):
                details = data[key]
                break

        return {
            "status": _first_text(data, STATUS_KEYS),
            "capture_status": _first_text(data, CAPTURE_STATUS_KEYS),
            "custom_order_id": _first_text(data, CUSTOM_ORDER_ID_KEYS),
            "payment_mode": payment_mode,
            "payment_details": details,
            "payload": dict(data),
        }

    @classmethod
    def from_payload(cls, data: dict) -> "RawStatusReport":
        return cls.model_validate(data)
