"""
Repertoire tools - MCP tools for set lists.

Tools for creating repertoires and managing which songs they contain
and in what order.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from chuk_mcp_chordgrid.constants import SuccessMessages
from chuk_mcp_chordgrid.models.repertoire import Repertoire
from chuk_mcp_chordgrid.store import (
    RepertoireFilter,
    RepertoireStore,
    SongStore,
    filter_repertoires,
)
from chuk_mcp_chordgrid.tools.songs import mutation_error, song_summary

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def repertoire_summary(repertoire: Repertoire) -> dict[str, Any]:
    return {
        "id": repertoire.id,
        "name": repertoire.name,
        "description": repertoire.description,
        "event_date": repertoire.event_date.isoformat() if repertoire.event_date else None,
        "song_ids": repertoire.song_ids,
        "song_count": repertoire.song_count,
    }


def register_repertoire_tools(
    mcp: ChukMCPServer,
    store: RepertoireStore,
    songs: SongStore,
) -> dict[str, Any]:
    """
    Register repertoire tools with the MCP server.

    Args:
        mcp: The MCP server instance
        store: The repertoire store
        songs: The song store, for resolving song ids

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def repertoire_create(
        name: str,
        description: str | None = None,
        event_date: str | None = None,
        song_ids: list[int] | None = None,
    ) -> str:
        """
        Create a new repertoire (set list).

        Args:
            name: Repertoire name
            description: Optional description
            event_date: Optional event date (YYYY-MM-DD)
            song_ids: Optional initial songs in play order

        Returns:
            JSON string with the created repertoire

        Example:
            repertoire_create(name="Friday gig", event_date="2026-11-06", song_ids=[1, 4, 2])
        """
        try:
            await store.ensure_loaded()
            await songs.ensure_loaded()
            missing = [song_id for song_id in song_ids or [] if songs.find(song_id) is None]
            if missing:
                return json.dumps({"status": "error", "message": f"Songs not found: {missing}"})

            repertoire = Repertoire(
                name=name,
                description=description,
                event_date=date.fromisoformat(event_date) if event_date else None,
                song_ids=song_ids or [],
            )
            result = await store.add(repertoire)
            if not result or result.entity is None:
                return mutation_error(result)

            return json.dumps(
                {
                    "status": "success",
                    "message": SuccessMessages.REPERTOIRE_CREATED.format(name=name),
                    "repertoire": repertoire_summary(result.entity),
                }
            )
        except Exception as e:
            logger.exception("Failed to create repertoire")
            return json.dumps({"status": "error", "message": str(e)})

    tools["repertoire_create"] = repertoire_create

    @mcp.tool  # type: ignore[arg-type]
    async def repertoire_list(search: str = "", upcoming_only: bool = False) -> str:
        """
        List repertoires.

        Args:
            search: Case-insensitive text to find in name or description
            upcoming_only: Only repertoires with an event today or later

        Returns:
            JSON string with matching repertoires

        Example:
            repertoire_list(upcoming_only=True)
        """
        try:
            if not await store.ensure_loaded():
                return json.dumps({"status": "error", "message": store.error})

            criteria = RepertoireFilter(search=search, upcoming_only=upcoming_only)
            repertoires = filter_repertoires(store.items, criteria)
            return json.dumps(
                {
                    "status": "success",
                    "repertoires": [repertoire_summary(r) for r in repertoires],
                    "count": len(repertoires),
                }
            )
        except Exception as e:
            logger.exception("Failed to list repertoires")
            return json.dumps({"status": "error", "message": str(e)})

    tools["repertoire_list"] = repertoire_list

    @mcp.tool  # type: ignore[arg-type]
    async def repertoire_get(repertoire_id: int) -> str:
        """
        Get a repertoire with its songs in play order.

        Args:
            repertoire_id: Repertoire id

        Returns:
            JSON string with the repertoire and song summaries

        Example:
            repertoire_get(repertoire_id=1)
        """
        try:
            await store.ensure_loaded()
            await songs.ensure_loaded()
            repertoire = store.find(repertoire_id)
            if repertoire is None:
                return json.dumps(
                    {"status": "error", "message": f"Repertoire {repertoire_id} not found"}
                )

            return json.dumps(
                {
                    "status": "success",
                    "repertoire": repertoire_summary(repertoire),
                    "songs": [song_summary(s) for s in store.songs_in(repertoire_id, songs)],
                }
            )
        except Exception as e:
            logger.exception("Failed to get repertoire")
            return json.dumps({"status": "error", "message": str(e)})

    tools["repertoire_get"] = repertoire_get

    @mcp.tool  # type: ignore[arg-type]
    async def repertoire_delete(repertoire_id: int) -> str:
        """
        Delete a repertoire. The songs themselves are kept.

        Args:
            repertoire_id: Repertoire id

        Returns:
            JSON string with the result

        Example:
            repertoire_delete(repertoire_id=2)
        """
        try:
            await store.ensure_loaded()
            result = await store.delete(repertoire_id)
            if not result:
                return mutation_error(result)

            return json.dumps(
                {
                    "status": "success",
                    "message": SuccessMessages.REPERTOIRE_DELETED.format(
                        repertoire_id=repertoire_id
                    ),
                }
            )
        except Exception as e:
            logger.exception("Failed to delete repertoire")
            return json.dumps({"status": "error", "message": str(e)})

    tools["repertoire_delete"] = repertoire_delete

    @mcp.tool  # type: ignore[arg-type]
    async def repertoire_add_songs(repertoire_id: int, song_ids: list[int]) -> str:
        """
        Append songs to a repertoire. Songs already in it are skipped.

        Args:
            repertoire_id: Repertoire id
            song_ids: Songs to append, in order

        Returns:
            JSON string with the new play order

        Example:
            repertoire_add_songs(repertoire_id=1, song_ids=[5, 6])
        """
        try:
            await store.ensure_loaded()
            await songs.ensure_loaded()
            missing = [song_id for song_id in song_ids if songs.find(song_id) is None]
            if missing:
                return json.dumps({"status": "error", "message": f"Songs not found: {missing}"})

            result = await store.add_songs(repertoire_id, song_ids)
            if not result or result.entity is None:
                return mutation_error(result)

            return json.dumps({"status": "success", "song_ids": result.entity.song_ids})
        except Exception as e:
            logger.exception("Failed to add songs to repertoire")
            return json.dumps({"status": "error", "message": str(e)})

    tools["repertoire_add_songs"] = repertoire_add_songs

    @mcp.tool  # type: ignore[arg-type]
    async def repertoire_remove_song(repertoire_id: int, song_id: int) -> str:
        """
        Remove a song from a repertoire.

        Args:
            repertoire_id: Repertoire id
            song_id: Song to remove

        Returns:
            JSON string with the new play order

        Example:
            repertoire_remove_song(repertoire_id=1, song_id=5)
        """
        try:
            await store.ensure_loaded()
            result = await store.remove_song(repertoire_id, song_id)
            if not result or result.entity is None:
                return mutation_error(result)

            return json.dumps({"status": "success", "song_ids": result.entity.song_ids})
        except Exception as e:
            logger.exception("Failed to remove song from repertoire")
            return json.dumps({"status": "error", "message": str(e)})

    tools["repertoire_remove_song"] = repertoire_remove_song

    @mcp.tool  # type: ignore[arg-type]
    async def repertoire_reorder_songs(
        repertoire_id: int,
        old_index: int | None = None,
        new_index: int | None = None,
        song_ids: list[int] | None = None,
    ) -> str:
        """
        Change the play order of a repertoire.

        Either move one song (old_index to new_index) or give the
        complete new order as song_ids.

        Args:
            repertoire_id: Repertoire id
            old_index: Current 0-based position of the song to move
            new_index: 0-based position to move it to
            song_ids: Complete new order (same songs as now)

        Returns:
            JSON string with the new play order

        Example:
            repertoire_reorder_songs(repertoire_id=1, old_index=3, new_index=0)
        """
        try:
            await store.ensure_loaded()
            if song_ids is not None:
                result = await store.set_song_order(repertoire_id, song_ids)
            elif old_index is not None and new_index is not None:
                result = await store.reorder_songs(repertoire_id, old_index, new_index)
            else:
                return json.dumps(
                    {
                        "status": "error",
                        "message": "Give either song_ids or both old_index and new_index",
                    }
                )
            if not result or result.entity is None:
                return mutation_error(result)

            return json.dumps({"status": "success", "song_ids": result.entity.song_ids})
        except Exception as e:
            logger.exception("Failed to reorder repertoire")
            return json.dumps({"status": "error", "message": str(e)})

    tools["repertoire_reorder_songs"] = repertoire_reorder_songs

    return tools
