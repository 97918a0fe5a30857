"""
seqrules.errors — Exception and warning types raised by the pipeline.

``ConfigurationError`` and ``ParseError`` abort a run and are also
``ValueError`` subclasses, so callers catching ``ValueError`` keep working.
``MalformedRuleWarning`` is only ever emitted through ``warnings.warn``.
"""
from __future__ import annotations
from typing import Any, Optional


class SeqRulesError(Exception):
    """Base class for every error raised by seqrules."""


class ConfigurationError(SeqRulesError, ValueError):
    """A user-supplied field name does not resolve to a column."""

    def __init__(self, field: str, canonical: Optional[str] = None, available: Optional[list] = None):
        self.field = field
        self.canonical = canonical
        self.available = list(available or [])
        msg = f"Field '{field}' not found"
        if canonical is not None and canonical != field:
            msg += f" (looked for '{canonical}')"
        if self.available:
            msg += f"; available columns: {', '.join(self.available)}"
        super().__init__(msg)


class ParseError(SeqRulesError, ValueError):
    """A timestamp value could not be parsed."""

    def __init__(self, position: int, value: Any, field: str):
        self.position = position
        self.value = value
        self.field = field
        super().__init__(f"Cannot parse timestamp {value!r} in column '{field}' at record {position}")


class SequenceInvariantError(SeqRulesError, RuntimeError):
    """Encoded transactions break the sequence/event numbering contract."""


class MalformedRuleWarning(UserWarning):
    """A rule string does not contain exactly one ' => ' separator."""
