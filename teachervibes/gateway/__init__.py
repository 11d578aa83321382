"""
Persistence gateway: the narrow interface to storage, files and identity.
"""

from .base import Gateway, IdentityProvider, ObjectStore
from .identity import SqlIdentityProvider
from .sql import SqlGateway
from .storage import FileObjectStore

__all__ = [
    "Gateway",
    "ObjectStore",
    "IdentityProvider",
    "SqlGateway",
    "FileObjectStore",
    "SqlIdentityProvider",
]
