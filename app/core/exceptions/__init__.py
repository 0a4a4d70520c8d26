# app/core/exceptions/__init__.py

from .base_exception import (
    BaseBusinessException,
    MalformedRequestException,
    PayloadTooLargeException,
    NotFoundException,
)
from .storage_exceptions import (
    DependencyUnavailableException,
    BlobDeleteFailedException,
)

__all__ = [
    "BaseBusinessException",
    "MalformedRequestException",
    "PayloadTooLargeException",
    "NotFoundException",

    "DependencyUnavailableException",
    "BlobDeleteFailedException",
]
