# Domain Entities
from .client import ClientRecord

__all__ = ["ClientRecord"]
