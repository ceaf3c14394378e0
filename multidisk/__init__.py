"""multidisk - multi-disk ROM set playlists and catalog patches."""

from .config import MultiDiskConfig, load_config
from .engine import MultiDiskEngine
from .version import __version__

__all__ = ["MultiDiskConfig", "MultiDiskEngine", "load_config", "__version__"]
