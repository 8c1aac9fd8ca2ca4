from .client import SessionApiClient, SessionApiConfig, SessionApiError
from .engine import SessionApi, TimerEngine, TimerState, bell

__all__ = [
    "SessionApi",
    "SessionApiClient",
    "SessionApiConfig",
    "SessionApiError",
    "TimerEngine",
    "TimerState",
    "bell",
]
