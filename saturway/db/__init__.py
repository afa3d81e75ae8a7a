"""Database utilities and models."""

from saturway.db.base import Base
from saturway.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
