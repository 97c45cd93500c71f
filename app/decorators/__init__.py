from app.decorators.metrics import timed
from app.decorators.with_retry import RETRIABLE_EXCEPTIONS, RETRIABLE_STATUSES, with_retry

__all__ = [
    "RETRIABLE_EXCEPTIONS",
    "RETRIABLE_STATUSES",
    "timed",
    "with_retry",
]
