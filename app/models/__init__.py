from app import db  # noqa: F401 - imported for model imports

from .admin_action import AdminAction
from .driver import Driver
from .event import Event
from .prediction import Prediction
from .user import User

__all__ = [
    "User",
    "Event",
    "Driver",
    "Prediction",
    "AdminAction",
]
