"""
PSP34 non-fungible token ledger.

This package provides:
- Ownership, Approval, Metadata and Enumeration indices
- PSP34Ledger: the atomic facade over those indices
- PSP34Factory for registering collections by id
- Capability Protocols for the base standard and its extensions
"""

from .approvals import ApprovalIndex
from .enumeration import DenseTokenList, EnumerationIndex
from .extensions import (
    PSP34,
    PSP34Burnable,
    PSP34Enumerable,
    PSP34Metadata,
    PSP34Mintable,
)
from .metadata import MetadataStore
from .ownership import OwnershipIndex
from .psp34 import PSP34Factory, PSP34Ledger, ReceiverCheck

__all__ = [
    # Indices
    "OwnershipIndex",
    "ApprovalIndex",
    "MetadataStore",
    "EnumerationIndex",
    "DenseTokenList",
    # Ledger
    "PSP34Ledger",
    "PSP34Factory",
    "ReceiverCheck",
    # Capabilities
    "PSP34",
    "PSP34Metadata",
    "PSP34Enumerable",
    "PSP34Mintable",
    "PSP34Burnable",
]
