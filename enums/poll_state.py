from enum import Enum


class PollState(Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"
    STOPPED = "STOPPED"


class PollStopReason(Enum):
    TERMINAL = "TERMINAL"     # Snapshot reached terminal lock
    TIMEOUT = "TIMEOUT"       # Wall-clock ceiling hit while still pending
    CANCELLED = "CANCELLED"   # stop() called (view closed, shutdown)
