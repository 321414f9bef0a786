"""
Song tools - MCP tools for the song library.

Tools for creating, editing, listing and transposing chord-grid songs.
Every change goes through the optimistic SongStore.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chuk_mcp_chordgrid.constants import NotationType, SuccessMessages
from chuk_mcp_chordgrid.models.song import Section, Song
from chuk_mcp_chordgrid.store import MutationResult, SongFilter, SongQueryView, SongStore
from chuk_mcp_chordgrid.transposition import complexity_analysis
from chuk_mcp_chordgrid.validation import validate_song

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def sections_from_data(data: list[dict[str, Any]]) -> list[Section]:
    """
    Build sections from the compact tool format.

    Each item has a label, an optional type, and one chord-text
    field per measure:

        {"label": "A", "type": "Verse", "measures": ["C G", "Am F"], "repeat_count": 2}
    """
    sections = []
    for order, item in enumerate(data):
        sections.append(
            Section.from_rows(
                label=str(item.get("label", "")),
                rows=[str(row) for row in item.get("measures", [])],
                section_type=item.get("type", "Verse"),
                order=order,
                repeat_count=int(item.get("repeat_count", 1)),
                has_repeat_sign=bool(item.get("has_repeat_sign", False)),
            )
        )
    return sections


def song_summary(song: Song) -> dict[str, Any]:
    return {
        "id": song.id,
        "title": song.title,
        "artist": song.artist,
        "key": song.key,
        "tempo": song.tempo,
        "time_signature": song.time_signature,
        "is_favorite": song.is_favorite,
        "sections": len(song.sections),
        "measures": song.total_measures,
        "structure": song.structure_pattern,
    }


def mutation_error(result: MutationResult[Any]) -> str:
    """JSON error payload for a failed store mutation."""
    payload: dict[str, Any] = {
        "status": "error",
        "state": result.state.value,
        "message": result.error,
    }
    if result.errors:
        payload["errors"] = result.errors
    return json.dumps(payload)


def register_song_tools(mcp: ChukMCPServer, store: SongStore) -> dict[str, Any]:
    """
    Register song library tools with the MCP server.

    Args:
        mcp: The MCP server instance
        store: The song store

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def song_create(
        title: str,
        artist: str,
        sections: list[dict[str, Any]],
        key: str = "C",
        time_signature: str = "4/4",
        tempo: int = 120,
        style: str | None = None,
        notation_type: str = "chords",
    ) -> str:
        """
        Create a new song from sections of chord rows.

        The song is validated before saving: it needs a title, an artist,
        at least one section, at least one measure per section and at
        least one chord per measure.

        Args:
            title: Song title
            artist: Artist name
            sections: Sections, each {"label", "type", "measures": ["C G", ...]}
            key: Musical key (e.g., 'G', 'F#m')
            time_signature: Time signature (default: '4/4')
            tempo: Tempo in BPM (20-300)
            style: Optional style (e.g., 'bossa nova')
            notation_type: 'chords' or 'roman_numerals'

        Returns:
            JSON string with the created song

        Example:
            song_create(
                title="Blue Bossa",
                artist="Kenny Dorham",
                key="Cm",
                sections=[{"label": "A", "measures": ["Cm7", "Fm7", "Dm7 G7", "Cm7"]}]
            )
        """
        try:
            await store.ensure_loaded()
            song = Song.create(
                title=title,
                artist=artist,
                key=key,
                time_signature=time_signature,
                tempo=tempo,
                sections=sections_from_data(sections),
                style=style,
                notation_type=NotationType(notation_type),
            )
            result = await store.add(song)
            if not result or result.entity is None:
                return mutation_error(result)

            return json.dumps(
                {
                    "status": "success",
                    "message": SuccessMessages.SONG_CREATED.format(title=title),
                    "song": song_summary(result.entity),
                }
            )
        except Exception as e:
            logger.exception("Failed to create song")
            return json.dumps({"status": "error", "message": str(e)})

    tools["song_create"] = song_create

    @mcp.tool  # type: ignore[arg-type]
    async def song_get(song_id: int) -> str:
        """
        Get a song with its full section and measure grid.

        Args:
            song_id: Song id

        Returns:
            JSON string with the song

        Example:
            song_get(song_id=1)
        """
        try:
            await store.ensure_loaded()
            song = await store.get_by_id(song_id)
            if song is None:
                return json.dumps({"status": "error", "message": f"Song {song_id} not found"})

            return json.dumps({"status": "success", "song": song.model_dump(mode="json")})
        except Exception as e:
            logger.exception("Failed to get song")
            return json.dumps({"status": "error", "message": str(e)})

    tools["song_get"] = song_get

    @mcp.tool  # type: ignore[arg-type]
    async def song_list(
        search: str = "",
        key: str | None = None,
        favorites_only: bool = False,
    ) -> str:
        """
        List songs, optionally filtered.

        Filters combine: a song must match all of them.

        Args:
            search: Case-insensitive text to find in title, artist or style
            key: Only songs in this key
            favorites_only: Only favorite songs

        Returns:
            JSON string with matching songs

        Example:
            song_list(search="bossa", favorites_only=True)
        """
        try:
            if not await store.ensure_loaded():
                return json.dumps({"status": "error", "message": store.error})

            view = SongQueryView(
                store, SongFilter(search=search, key=key, favorites_only=favorites_only)
            )
            songs = view.results
            return json.dumps(
                {
                    "status": "success",
                    "songs": [song_summary(song) for song in songs],
                    "count": len(songs),
                    "total": store.count,
                }
            )
        except Exception as e:
            logger.exception("Failed to list songs")
            return json.dumps({"status": "error", "message": str(e)})

    tools["song_list"] = song_list

    @mcp.tool  # type: ignore[arg-type]
    async def song_update(
        song_id: int,
        title: str | None = None,
        artist: str | None = None,
        key: str | None = None,
        time_signature: str | None = None,
        tempo: int | None = None,
        style: str | None = None,
        sections: list[dict[str, Any]] | None = None,
    ) -> str:
        """
        Update a song's metadata or replace its sections.

        Only the given fields change. Passing sections replaces the whole
        grid. The edit is rolled back if it cannot be saved.

        Args:
            song_id: Song id
            title: New title
            artist: New artist
            key: New key (does not move the chords; use song_transpose)
            time_signature: New time signature
            tempo: New tempo in BPM
            style: New style
            sections: Replacement sections, same format as song_create

        Returns:
            JSON string with the updated song

        Example:
            song_update(song_id=1, tempo=140)
        """
        try:
            await store.ensure_loaded()
            changes: dict[str, Any] = {
                "title": title,
                "artist": artist,
                "key": key,
                "time_signature": time_signature,
                "tempo": tempo,
                "style": style,
            }
            update = {field: value for field, value in changes.items() if value is not None}
            if sections is not None:
                update["sections"] = sections_from_data(sections)

            result = await store.edit(song_id, update)
            if not result or result.entity is None:
                return mutation_error(result)

            return json.dumps({"status": "success", "song": song_summary(result.entity)})
        except Exception as e:
            logger.exception("Failed to update song")
            return json.dumps({"status": "error", "message": str(e)})

    tools["song_update"] = song_update

    @mcp.tool  # type: ignore[arg-type]
    async def song_delete(song_id: int) -> str:
        """
        Delete a song.

        Repertoires that list the song keep their other songs.

        Args:
            song_id: Song id

        Returns:
            JSON string with the result

        Example:
            song_delete(song_id=3)
        """
        try:
            await store.ensure_loaded()
            result = await store.delete(song_id)
            if not result:
                return mutation_error(result)

            return json.dumps(
                {
                    "status": "success",
                    "message": SuccessMessages.SONG_DELETED.format(song_id=song_id),
                }
            )
        except Exception as e:
            logger.exception("Failed to delete song")
            return json.dumps({"status": "error", "message": str(e)})

    tools["song_delete"] = song_delete

    @mcp.tool  # type: ignore[arg-type]
    async def song_toggle_favorite(song_id: int) -> str:
        """
        Mark or unmark a song as favorite.

        Args:
            song_id: Song id

        Returns:
            JSON string with the new favorite state

        Example:
            song_toggle_favorite(song_id=1)
        """
        try:
            await store.ensure_loaded()
            result = await store.toggle_favorite(song_id)
            if not result or result.entity is None:
                return mutation_error(result)

            return json.dumps(
                {"status": "success", "song_id": song_id, "is_favorite": result.entity.is_favorite}
            )
        except Exception as e:
            logger.exception("Failed to toggle favorite")
            return json.dumps({"status": "error", "message": str(e)})

    tools["song_toggle_favorite"] = song_toggle_favorite

    @mcp.tool  # type: ignore[arg-type]
    async def song_transpose(song_id: int, semitones: int, save: bool = True) -> str:
        """
        Transpose a song's key and every chord.

        Args:
            song_id: Song id
            semitones: Semitones to move, -12 to 12
            save: Save the result (False only previews it)

        Returns:
            JSON string with the new key and a complexity comparison

        Example:
            song_transpose(song_id=1, semitones=-2)
        """
        try:
            await store.ensure_loaded()
            current = store.find(song_id)
            if current is None:
                return json.dumps({"status": "error", "message": f"Song {song_id} not found"})

            analysis = complexity_analysis(current, semitones)
            if save:
                result = await store.transpose(song_id, semitones)
                if not result or result.entity is None:
                    return mutation_error(result)
                transposed = result.entity
            else:
                transposed = current.transpose(semitones)

            return json.dumps(
                {
                    "status": "success",
                    "saved": save,
                    "original_key": current.key,
                    "new_key": transposed.key,
                    "complexity": {
                        "original": analysis.original,
                        "transposed": analysis.transposed,
                        "description": analysis.description,
                    },
                    "song": transposed.model_dump(mode="json"),
                }
            )
        except Exception as e:
            logger.exception("Failed to transpose song")
            return json.dumps({"status": "error", "message": str(e)})

    tools["song_transpose"] = song_transpose

    @mcp.tool  # type: ignore[arg-type]
    async def song_validate(song_id: int) -> str:
        """
        Validate a stored song and list errors and warnings.

        Args:
            song_id: Song id

        Returns:
            JSON string with validation results

        Example:
            song_validate(song_id=1)
        """
        try:
            await store.ensure_loaded()
            song = await store.get_by_id(song_id)
            if song is None:
                return json.dumps({"status": "error", "message": f"Song {song_id} not found"})

            result = validate_song(song)
            return json.dumps(
                {
                    "status": "success",
                    "is_valid": result.is_valid,
                    "errors": [
                        {"code": i.code, "message": i.message, "location": i.location}
                        for i in result.errors
                    ],
                    "warnings": [
                        {"code": i.code, "message": i.message, "location": i.location}
                        for i in result.warnings
                    ],
                }
            )
        except Exception as e:
            logger.exception("Failed to validate song")
            return json.dumps({"status": "error", "message": str(e)})

    tools["song_validate"] = song_validate

    return tools
