from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .subscriber import Subscriber  # noqa: F401
from .settings import DrawConfiguration, check_share_split  # noqa: F401
from .draw import DrawRecordRow, DrawWinner  # noqa: F401

__all__ = [
    "Base",
    "Subscriber",
    "DrawConfiguration",
    "DrawRecordRow",
    "DrawWinner",
    "check_share_split",
]
