#!/usr/bin/env python3
"""
Async Chord Grid MCP Server using chuk-mcp-server

This server provides MCP tools for keeping a songbook of chord grids:
songs made of sections, sections made of measures, measures holding
chord symbols.

The server provides tools for:
- Parsing, transposing and analyzing chord symbols
- Creating, editing, validating and transposing songs
- Building repertoires (set lists) and ordering their songs
"""

import logging
import os
from pathlib import Path

from chuk_mcp_server import ChukMCPServer

from chuk_mcp_chordgrid.store import (
    RepertoireStore,
    SongStore,
    YamlRepertoireGateway,
    YamlSongGateway,
)
from chuk_mcp_chordgrid.tools import (
    register_chord_tools,
    register_repertoire_tools,
    register_song_tools,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer("chuk-mcp-chordgrid")

# Paths - CHORDGRID_DATA_DIR is set by the entry point's --data-dir
DATA_DIR = Path(os.environ.get("CHORDGRID_DATA_DIR", Path.cwd() / "chordgrid"))
SONGS_FILE = DATA_DIR / "songs.yaml"
REPERTOIRES_FILE = DATA_DIR / "repertoires.yaml"

# Create stores
song_store = SongStore(YamlSongGateway(SONGS_FILE))
repertoire_store = RepertoireStore(YamlRepertoireGateway(REPERTOIRES_FILE))

# Register all tools
chord_tools = register_chord_tools(mcp)
song_tools = register_song_tools(mcp, song_store)
repertoire_tools = register_repertoire_tools(mcp, repertoire_store, song_store)

# Export tool functions for direct access
chord_parse = chord_tools["chord_parse"]
chord_transpose = chord_tools["chord_transpose"]
chord_analyze = chord_tools["chord_analyze"]
chord_validate_progression = chord_tools["chord_validate_progression"]
chord_enharmonic = chord_tools["chord_enharmonic"]

song_create = song_tools["song_create"]
song_get = song_tools["song_get"]
song_list = song_tools["song_list"]
song_update = song_tools["song_update"]
song_delete = song_tools["song_delete"]
song_toggle_favorite = song_tools["song_toggle_favorite"]
song_transpose = song_tools["song_transpose"]
song_validate = song_tools["song_validate"]

repertoire_create = repertoire_tools["repertoire_create"]
repertoire_list = repertoire_tools["repertoire_list"]
repertoire_get = repertoire_tools["repertoire_get"]
repertoire_delete = repertoire_tools["repertoire_delete"]
repertoire_add_songs = repertoire_tools["repertoire_add_songs"]
repertoire_remove_song = repertoire_tools["repertoire_remove_song"]
repertoire_reorder_songs = repertoire_tools["repertoire_reorder_songs"]

logger.info("CHUK Chord Grid MCP Server initialized")
logger.info(f"  Songs file: {SONGS_FILE}")
logger.info(f"  Repertoires file: {REPERTOIRES_FILE}")
