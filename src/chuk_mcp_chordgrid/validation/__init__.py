"""
Song and repertoire validation.

This module provides:
- SongValidator: Structural invariants checked before a song is saved
- RepertoireValidator: Repertoire metadata checks
- ValidationResult: Itemized issues with severities
"""

from chuk_mcp_chordgrid.validation.validator import (
    RepertoireValidator,
    SongValidator,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    time_signature_error,
    validate_repertoire,
    validate_song,
)

__all__ = [
    "RepertoireValidator",
    "SongValidator",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
    "time_signature_error",
    "validate_repertoire",
    "validate_song",
]
