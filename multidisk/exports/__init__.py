"""Output backends.

Provides:
- Playlist files for playlist platforms
- Catalog patches (hide/unhide, canonical names) for catalog platforms
- The reconciliation sweep over catalog platforms
"""

from .catalog_patch import CatalogPatcher, CatalogPatchWriter, CatalogState, CatalogStore, record_path_for
from .playlist_writer import PlaylistWriter, render_playlist
from .reconcile import hidden_targets, reconcile_platform

__all__ = [
    "CatalogPatchWriter",
    "CatalogPatcher",
    "CatalogState",
    "CatalogStore",
    "PlaylistWriter",
    "hidden_targets",
    "reconcile_platform",
    "record_path_for",
    "render_playlist",
]
