"""
Optimistic entity stores and their persistence gateways.

This module provides:
- EntityStore: Generic optimistic mirror with exact rollback
- SongStore / RepertoireStore: Stores for the two aggregates
- PersistenceGateway: Storage boundary (in-memory and YAML file)
- SongFilter / SongQueryView: Read-only filtered projections
"""

from chuk_mcp_chordgrid.store.entity_store import EntityStore
from chuk_mcp_chordgrid.store.gateway import (
    InMemoryGateway,
    InMemoryRepertoireGateway,
    PersistenceGateway,
    RepertoireGateway,
)
from chuk_mcp_chordgrid.store.query import (
    RepertoireFilter,
    SongFilter,
    SongQueryView,
    filter_repertoires,
    filter_songs,
)
from chuk_mcp_chordgrid.store.repertoire_store import RepertoireStore
from chuk_mcp_chordgrid.store.result import MutationResult, MutationState
from chuk_mcp_chordgrid.store.song_store import SongStore
from chuk_mcp_chordgrid.store.yaml_gateway import (
    YamlFileGateway,
    YamlRepertoireGateway,
    YamlSongGateway,
)

__all__ = [
    "EntityStore",
    "InMemoryGateway",
    "InMemoryRepertoireGateway",
    "MutationResult",
    "MutationState",
    "PersistenceGateway",
    "RepertoireFilter",
    "RepertoireGateway",
    "RepertoireStore",
    "SongFilter",
    "SongQueryView",
    "SongStore",
    "YamlFileGateway",
    "YamlRepertoireGateway",
    "YamlSongGateway",
    "filter_repertoires",
    "filter_songs",
]
