"""Default lookup tables for command normalization and validation.

Every heuristic the normalizer applies is driven by one of these
tables, so deployments can override them from configuration and tests
can exercise them row by row.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SafetyFlagRule(BaseModel):
    """Append a flag to commands whose text starts with a verb prefix.

    The flag is skipped when the command starts with one of the exempt
    prefixes or already mentions one of the targeting flags.
    """

    model_config = ConfigDict(frozen=True)

    verb_prefix: str = Field(min_length=1)
    flag: str = Field(min_length=1)
    unless_prefixes: tuple[str, ...] = Field(default=())
    unless_flags: tuple[str, ...] = Field(default=())


# Bare entity names that lose their namespace when typed into a REPL
ENTITY_NAMES: tuple[str, ...] = (
    "User",
    "Category",
    "Product",
    "Post",
    "Order",
    "Customer",
    "Item",
    "Tag",
    "Role",
    "Permission",
)

ENTITY_NAMESPACE = "app.models."

# Run-together qualifiers (separators stripped in transit) -> qualified prefix
CONCATENATED_NAMESPACES: dict[str, str] = {
    "AppModels": "app.models.",
    "AppHttpControllers": "app.http.controllers.",
}

# Helpers whose single argument is a key and should be a string literal
QUOTED_FUNCTIONS: tuple[str, ...] = ("date", "config", "env", "cache", "view", "route")

DEFAULT_COMMAND = "list"

NO_INTERACTION_FLAG = "--no-interaction"

SAFETY_FLAG_RULES: tuple[SafetyFlagRule, ...] = (
    SafetyFlagRule(
        verb_prefix="migrate",
        flag="--force",
        unless_prefixes=("migrate:status", "migrate:rollback"),
    ),
    SafetyFlagRule(verb_prefix="db:seed", flag="--force"),
    SafetyFlagRule(
        verb_prefix="vendor:publish",
        flag="--all",
        unless_flags=("--provider", "--tag"),
    ),
)

# Verbs that cannot run without a terminal, with the reason shown to callers
HEADLESS_DENIED: dict[str, str] = {
    "down": "Maintenance mode should be handled through deployment",
    "serve": "Development server not applicable in web terminal",
}

# Endpoint method policy: allow-list wins, then deny-list, then default-allow
ENDPOINT_ALLOWED_PATTERNS: tuple[str, ...] = (
    r"^list",
    r"^help",
    r"^route:list",
    r"^cache:clear",
    r"^config:clear",
    r"^view:clear",
    r"^migrate:status",
    r"^queue:work",
    r"^queue:restart",
    r"^storage:link",
    r"^optimize",
)

ENDPOINT_BLOCKED_PATTERNS: tuple[str, ...] = (
    r"^migrate",
    r"^db:seed",
    r"^key:generate",
    r"^down\b",
    r"^up\b",
)
