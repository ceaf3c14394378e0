"""multidisk - Configuration Package"""

from .models import (
    CatalogMode,
    CatalogPolicy,
    LoggingSettings,
    MultiDiskConfig,
)
from .io import get_config_path, load_config, save_config, validate_config

__all__ = [
    'CatalogMode',
    'CatalogPolicy',
    'LoggingSettings',
    'MultiDiskConfig',
    'get_config_path',
    'load_config',
    'save_config',
    'validate_config',
]
