"""Reusable type definitions for interchain orchestration."""

from .base import StrictBaseModel
from .exceptions import (
    ChainNotStarted,
    DeadlineExceeded,
    DeclarationError,
    DuplicateParticipant,
    DuplicatePath,
    HandshakeError,
    HandshakeIncomplete,
    HandshakeOrderError,
    HandshakeRejection,
    InitializationFailure,
    InterchainError,
    ProtocolRejection,
    ResourceError,
    TeardownFailure,
    TopologySealed,
    TransactionError,
    TransientQueryError,
    UnknownParticipant,
)

__all__ = [
    "StrictBaseModel",
    # Orchestration errors
    "InterchainError",
    "DeclarationError",
    "DuplicatePath",
    "DuplicateParticipant",
    "UnknownParticipant",
    "TopologySealed",
    "InitializationFailure",
    "HandshakeError",
    "HandshakeRejection",
    "HandshakeOrderError",
    "HandshakeIncomplete",
    "DeadlineExceeded",
    "TeardownFailure",
    # Adapter conditions
    "TransientQueryError",
    "ProtocolRejection",
    "TransactionError",
    "ChainNotStarted",
    "ResourceError",
]
