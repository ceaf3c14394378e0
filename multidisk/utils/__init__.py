"""multidisk - Utility Package"""

from .backup_utils import backup_base_name, backup_file, next_backup_path

__all__ = [
    'backup_base_name',
    'backup_file',
    'next_backup_path',
]
