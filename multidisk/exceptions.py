#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
multidisk - Consolidated Exception Classes

All project-specific exceptions live here so callers can catch one base
class. Situations that are part of normal operation (unparseable filenames,
missing catalog records, incomplete sets, duplicates) are report outcomes,
not exceptions.
"""

from datetime import datetime
from typing import Dict, Any, Optional


class BaseError(Exception):
    """Base class for all project-specific errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code or "ERROR"
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Converts the exception to a dictionary for structured logging."""
        return {
            'error_code': self.error_code,
            'message': str(self),
            'details': self.details,
            'timestamp': self.timestamp.isoformat()
        }


# =====================================================================================================
# Configuration errors
# =====================================================================================================

class ConfigurationError(BaseError):
    """Base class for configuration errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 file_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        config_details = details or {}
        if file_path:
            config_details['file_path'] = str(file_path)
        super().__init__(message, error_code or "CONFIG_ERROR", config_details)


class ValidationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 expected_type: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        validation_details = details or {}
        if field_name:
            validation_details['field_name'] = field_name
        if expected_type:
            validation_details['expected_type'] = expected_type
        super().__init__(message, "VALIDATION_ERROR", None, validation_details)


# =====================================================================================================
# IO and data errors
# =====================================================================================================

class ScannerError(BaseError):
    """Raised when a ROM root cannot be enumerated."""

    def __init__(self, message: str, file_path: Optional[str] = None,
                 platform: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        scanner_details = details or {}
        if file_path:
            scanner_details['file_path'] = str(file_path)
        if platform:
            scanner_details['platform'] = platform
        super().__init__(message, "SCANNER_ERROR", scanner_details)


class DataError(BaseError):
    """Base class for data-related errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code or "DATA_ERROR", details)


class FileOperationError(DataError):
    """Raised when file operation errors occur."""

    def __init__(self, message: str, file_path: Optional[str] = None,
                 operation: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None,
                 error_code: Optional[str] = None):
        file_details = details or {}
        if file_path:
            file_details['file_path'] = str(file_path)
        if operation:
            file_details['operation'] = operation
        super().__init__(message, error_code or "FILE_OP_ERROR", file_details)


class BackupError(FileOperationError):
    """Raised when a catalog backup copy cannot be created.

    A catalog is never flushed without its backup, so this error aborts the
    flush of the affected platform and propagates to the caller.
    """

    def __init__(self, message: str, file_path: Optional[str] = None,
                 backup_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        backup_details = details or {}
        if backup_path:
            backup_details['backup_path'] = str(backup_path)
        super().__init__(message, file_path, "backup", backup_details, "BACKUP_ERROR")


class CatalogError(DataError):
    """Raised when a patched catalog would no longer be well-formed."""

    def __init__(self, message: str, catalog_path: Optional[str] = None,
                 platform: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        catalog_details = details or {}
        if catalog_path:
            catalog_details['catalog_path'] = str(catalog_path)
        if platform:
            catalog_details['platform'] = platform
        super().__init__(message, "CATALOG_ERROR", catalog_details)
