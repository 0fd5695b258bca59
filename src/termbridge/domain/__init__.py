"""Domain models for termbridge.

This package contains all core data structures, enumerations, and value
objects used throughout the system. All models use Pydantic v2 for
validation and serialization.
"""

from termbridge.domain.models import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    EvaluationKind,
    ExecutionResult,
    NormalizedCommand,
    ProcessMode,
    ProcessSpec,
    RpcError,
    RpcRequest,
    RpcResponse,
    SessionKey,
    VariableRecord,
)

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_REQUEST",
    "EvaluationKind",
    "ExecutionResult",
    "NormalizedCommand",
    "ProcessMode",
    "ProcessSpec",
    "RpcError",
    "RpcRequest",
    "RpcResponse",
    "SessionKey",
    "VariableRecord",
]
