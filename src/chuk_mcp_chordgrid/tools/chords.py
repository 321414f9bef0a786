"""
Chord tools - MCP tools for chord notation.

Tools for parsing, transposing and analyzing chord symbols. These are
pure computations and never touch the song stores.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chuk_mcp_chordgrid.constants import MAX_TRANSPOSITION
from chuk_mcp_chordgrid.core import (
    are_enharmonic,
    describe_transposition,
    get_complexity,
    get_display_name,
    get_substitutions,
    parse_chord,
    parse_chord_input,
    transpose_chords,
    validate_progression,
    validate_transposition,
)

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def chord_to_dict(text: str) -> dict[str, Any]:
    """Parsed components of a chord, as returned by the chord tools."""
    chord = parse_chord(text)
    return {
        "text": text,
        "is_valid": chord.is_valid,
        "root": chord.root if chord.is_valid else None,
        "quality": chord.quality,
        "quality_token": chord.quality_token,
        "extension": chord.extension,
        "bass": chord.bass or None,
        "display_name": get_display_name(text),
    }


def register_chord_tools(mcp: ChukMCPServer) -> dict[str, Any]:
    """
    Register chord notation tools with the MCP server.

    Args:
        mcp: The MCP server instance

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def chord_parse(chord: str) -> str:
        """
        Parse a chord symbol into root, quality, extension and bass.

        Malformed chords are reported with is_valid=false rather than
        as an error.

        Args:
            chord: Chord symbol (e.g., 'C', 'F#m7', 'Bbmaj9', 'D/F#')

        Returns:
            JSON string with the chord components

        Example:
            chord_parse(chord="F#m7/C#")
        """
        try:
            return json.dumps({"status": "success", "chord": chord_to_dict(chord)})
        except Exception as e:
            logger.exception("Failed to parse chord")
            return json.dumps({"status": "error", "message": str(e)})

    tools["chord_parse"] = chord_parse

    @mcp.tool  # type: ignore[arg-type]
    async def chord_transpose(chords: str, semitones: int) -> str:
        """
        Transpose chords by a number of semitones.

        Only roots and slash basses move; qualities and extensions
        are kept as written. Unparseable chords pass through unchanged.

        Args:
            chords: Space-separated chords (e.g., 'C G Am F')
            semitones: Semitones to move, -12 to 12 (negative moves down)

        Returns:
            JSON string with the transposed chords

        Example:
            chord_transpose(chords="C G/B Am7 Fmaj7", semitones=2)
        """
        try:
            if abs(semitones) > MAX_TRANSPOSITION:
                return json.dumps(
                    {"status": "error", "message": validate_transposition(semitones)[0]}
                )
            original = parse_chord_input(chords)
            return json.dumps(
                {
                    "status": "success",
                    "original": original,
                    "transposed": transpose_chords(original, semitones),
                    "semitones": semitones,
                    "description": describe_transposition(semitones),
                    "warnings": validate_transposition(semitones),
                }
            )
        except Exception as e:
            logger.exception("Failed to transpose chords")
            return json.dumps({"status": "error", "message": str(e)})

    tools["chord_transpose"] = chord_transpose

    @mcp.tool  # type: ignore[arg-type]
    async def chord_analyze(chord: str) -> str:
        """
        Analyze a chord: complexity score and substitution suggestions.

        Args:
            chord: Chord symbol (e.g., 'G7')

        Returns:
            JSON string with complexity and substitutions

        Example:
            chord_analyze(chord="G7")
        """
        try:
            return json.dumps(
                {
                    "status": "success",
                    "chord": chord_to_dict(chord),
                    "complexity": get_complexity(chord),
                    "substitutions": get_substitutions(chord),
                }
            )
        except Exception as e:
            logger.exception("Failed to analyze chord")
            return json.dumps({"status": "error", "message": str(e)})

    tools["chord_analyze"] = chord_analyze

    @mcp.tool  # type: ignore[arg-type]
    async def chord_validate_progression(chords: str) -> str:
        """
        Check a chord progression for invalid or suspicious chords.

        Args:
            chords: Space-separated chords (e.g., 'C Am F G7')

        Returns:
            JSON string with is_valid and a list of issues

        Example:
            chord_validate_progression(chords="C Am F G7")
        """
        try:
            progression = chords.split()
            issues = validate_progression(progression)
            return json.dumps(
                {
                    "status": "success",
                    "is_valid": not issues,
                    "chord_count": len(progression),
                    "issues": issues,
                }
            )
        except Exception as e:
            logger.exception("Failed to validate progression")
            return json.dumps({"status": "error", "message": str(e)})

    tools["chord_validate_progression"] = chord_validate_progression

    @mcp.tool  # type: ignore[arg-type]
    async def chord_enharmonic(first: str, second: str) -> str:
        """
        Check whether two chords are the same chord spelled differently.

        Roots are compared by pitch; quality, extension and bass must
        match exactly (C#7 and Db7 are enharmonic, C#7 and Db9 are not).

        Args:
            first: First chord
            second: Second chord

        Returns:
            JSON string with the comparison result

        Example:
            chord_enharmonic(first="C#7", second="Db7")
        """
        try:
            return json.dumps(
                {
                    "status": "success",
                    "first": first,
                    "second": second,
                    "enharmonic": are_enharmonic(first, second),
                }
            )
        except Exception as e:
            logger.exception("Failed to compare chords")
            return json.dumps({"status": "error", "message": str(e)})

    tools["chord_enharmonic"] = chord_enharmonic

    return tools
