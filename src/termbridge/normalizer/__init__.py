"""Command normalization and validation.

Provides the CommandNormalizer that repairs raw command text, the
CommandPolicy that gates endpoint methods, and the default rule tables
both are built from.
"""

from termbridge.normalizer.command import CommandNormalizer
from termbridge.normalizer.policy import CommandPolicy, CommandRejected

__all__ = ["CommandNormalizer", "CommandPolicy", "CommandRejected"]
