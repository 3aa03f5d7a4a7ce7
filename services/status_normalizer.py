from enums.canonical_status import CanonicalStatus

_VOCABULARY = {
    "SUCCESS": CanonicalStatus.SUCCESS,
    "COMPLETED": CanonicalStatus.SUCCESS,
    "PAID": CanonicalStatus.SUCCESS,
    "FAILED": CanonicalStatus.FAILED,
    "DECLINED": CanonicalStatus.FAILED,
    "ERROR": CanonicalStatus.FAILED,
    "CANCELLED": CanonicalStatus.CANCELLED,
    "CANCELED": CanonicalStatus.CANCELLED,
    "USER_DROPPED": CanonicalStatus.CANCELLED,
}


def _lookup(raw_status: str | None) -> CanonicalStatus:
    if not raw_status:
        return CanonicalStatus.PENDING
    return _VOCABULARY.get(str(raw_status).strip().upper(), CanonicalStatus.PENDING)


def normalize(primary_status: str | None = None, capture_status: str | None = None) -> CanonicalStatus:
    """
    Map a gateway status (plus optional capture sub-status) to a canonical status.

    Unknown or missing values degrade to PENDING. Some gateways report an outer
    SUCCESS while the capture is still settling; a present capture status that
    reads as pending downgrades that SUCCESS to PENDING.

    Examples:
        normalize("success") -> SUCCESS
        normalize("SUCCESS", "PENDING") -> PENDING
        normalize("garbage") -> PENDING
    """
    status = _lookup(primary_status)
    if status is CanonicalStatus.SUCCESS and capture_status:
        if _lookup(capture_status) is CanonicalStatus.PENDING:
            return CanonicalStatus.PENDING
    return status
