"""Core domain models for the termbridge system.

These models represent the data flowing through the execution engine:
normalized commands, session identities, persisted REPL variables,
process specifications, execution results, and the JSON-RPC envelopes
exchanged with remote callers.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ProcessMode(str, enum.Enum):
    """How an external process's output reaches the caller."""

    BUFFERED = "buffered"  # Collect everything, return once
    STREAMED = "streamed"  # Forward each line as it arrives


class EvaluationKind(str, enum.Enum):
    """Classification of REPL input before evaluation."""

    ASSIGNMENT = "assignment"
    STATEMENT = "statement"
    EXPRESSION = "expression"


# ---------------------------------------------------------------------------
# Command Models
# ---------------------------------------------------------------------------


class NormalizedCommand(BaseModel):
    """A command line after repair and safety-flag injection.

    The verb is the first whitespace-delimited token of the text and is
    what allow/deny and safety-flag decisions key on.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="The repaired command line")
    verb: str = Field(description="Leading token of the command line")

    @classmethod
    def from_text(cls, text: str) -> NormalizedCommand:
        parts = text.split(maxsplit=1)
        return cls(text=text, verb=parts[0] if parts else "")


# ---------------------------------------------------------------------------
# Session / Variable Models
# ---------------------------------------------------------------------------


class SessionKey(BaseModel):
    """Identifies a REPL session.

    Derived from a caller identity and a coarse time bucket, so the same
    caller within the same window maps to the same session.
    """

    model_config = ConfigDict(frozen=True)

    identity: str = Field(description="Caller identity, usually the client address")
    bucket: int = Field(ge=0, description="Index of the fixed-width time window")
    value: str = Field(description="Opaque key used by the variable store")

    def __str__(self) -> str:
        return self.value


class VariableRecord(BaseModel):
    """A persisted REPL binding.

    The payload reconstructs the original value; type and display are
    what listings show without deserializing anything.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Identifier the value is bound to")
    type: str = Field(description="Type tag of the value")
    display: str = Field(description="Short human-readable rendering")
    payload: str = Field(description="Serialized value (base64 pickle)")


# ---------------------------------------------------------------------------
# Execution Models
# ---------------------------------------------------------------------------


class ProcessSpec(BaseModel):
    """What to launch, where, and how its output is delivered.

    Build through ProcessRunner.build_spec so the mode is always derived
    from the command text rather than chosen by a caller.
    """

    model_config = ConfigDict(frozen=True)

    command: str = Field(description="Command line as typed, used for classification")
    argv: list[str] = Field(min_length=1, description="Resolved argument vector")
    cwd: Path = Field(description="Working directory for the child process")
    mode: ProcessMode


class ExecutionResult(BaseModel):
    """Outcome of one gateway invocation.

    Created per call and discarded once the transcript has been returned.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    exit_code: int = Field(default=0, description="Zero on success")
    output: list[str] = Field(default_factory=list, description="Transcript lines, in order")
    value: Any = Field(default=None, description="Typed return value (REPL mode only)")
    error: str | None = Field(default=None, description="Error category and message, if any")

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def transcript(self) -> str:
        return "\n".join(self.output)


# ---------------------------------------------------------------------------
# JSON-RPC Envelopes
# ---------------------------------------------------------------------------


INVALID_REQUEST = -32600
INTERNAL_ERROR = -32603


class RpcRequest(BaseModel):
    """A gateway request: method name plus ordered parameter strings."""

    jsonrpc: str | None = Field(default="2.0")
    id: int | str | None = Field(default=None, description="Caller correlation id")
    method: str = Field(default="", description="Verb or mode name, e.g. 'python', 'pip', 'list'")
    params: list[str] = Field(default_factory=list)


class RpcError(BaseModel):
    code: int
    message: str
    data: str = ""


class RpcResponse(BaseModel):
    """Either a result envelope or an error envelope, never both."""

    jsonrpc: str | None = None
    id: int | str | None = None
    result: str | None = None
    error: RpcError | None = None

    @classmethod
    def success(cls, request: RpcRequest, transcript: str) -> RpcResponse:
        return cls(jsonrpc=request.jsonrpc, id=request.id, result=transcript)

    @classmethod
    def failure(cls, request: RpcRequest, code: int, message: str, data: str = "") -> RpcResponse:
        return cls(
            jsonrpc=request.jsonrpc,
            id=request.id,
            error=RpcError(code=code, message=message, data=data),
        )
