"""
Database models for the SRI Document Identity API
"""

from .tenant import Tenant
from .establishment import Establishment, EmissionPoint
from .document_sequence import DocumentSequence
from .issued_document import IssuedDocument

__all__ = [
    "Tenant",
    "Establishment",
    "EmissionPoint",
    "DocumentSequence",
    "IssuedDocument",
]
