# Light package init: migrations import Base from here without pulling services.
from app.shared.models.base import Base

__all__ = ["Base"]
