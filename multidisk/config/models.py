from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CatalogMode = Literal["patch", "ignore"]
CatalogPolicy = Literal["reconcile", "per_set"]
LineSeparator = Literal["crlf", "lf"]

DEFAULT_IGNORED_EXTENSIONS = [
    ".m3u", ".m3u8", ".xml", ".txt", ".nfo", ".dat", ".json", ".yaml", ".yml",
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".pdf", ".bak", ".ini", ".cfg",
    ".srm", ".sav", ".state", ".log",
]

DEFAULT_SHEET_EXTENSIONS = [".cue", ".gdi", ".ccd", ".mds", ".toc"]


def _normalize_extension(value: str) -> str:
    value = str(value).strip().lower()
    if value and not value.startswith("."):
        value = "." + value
    return value


class _BaseConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class LoggingSettings(_BaseConfigModel):
    level: str = "INFO"
    log_dir: Optional[str] = None
    file_logging: bool = False
    json_output: bool = Field(default=False, alias="json")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class MultiDiskConfig(_BaseConfigModel):
    """Settings consumed by the engine.

    ``catalog_platforms`` lists the platform folders whose multi-disk sets are
    represented by hiding records in the catalog rather than by playlists.
    """

    dry_run: bool = False
    catalog_platforms: List[str] = Field(default_factory=list)
    catalog_mode: CatalogMode = "patch"
    catalog_policy: CatalogPolicy = "reconcile"
    catalog_filename: str = "gamelist.xml"
    backup_suffix: str = ".multidisk-backup"
    playlist_extension: str = ".m3u"
    line_separator: LineSeparator = "crlf"
    preference_marker: str = "[!]"
    record_search_window: int = Field(default=64, ge=4)
    name_hint_max_length: int = Field(default=40, ge=1)
    ignored_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORED_EXTENSIONS))
    sheet_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_SHEET_EXTENSIONS))
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("ignored_extensions", "sheet_extensions")
    @classmethod
    def _lower_extensions(cls, values: List[str]) -> List[str]:
        return [ext for ext in (_normalize_extension(v) for v in values) if ext]

    @field_validator("playlist_extension")
    @classmethod
    def _playlist_extension(cls, value: str) -> str:
        ext = _normalize_extension(value)
        if not ext:
            raise ValueError("playlist_extension must not be empty")
        return ext

    @field_validator("catalog_platforms")
    @classmethod
    def _strip_platforms(cls, values: List[str]) -> List[str]:
        return [str(v).strip() for v in values if str(v).strip()]

    @property
    def newline(self) -> str:
        return "\r\n" if self.line_separator == "crlf" else "\n"

    def is_catalog_platform(self, platform_id: str) -> bool:
        wanted = platform_id.strip().lower()
        return any(p.lower() == wanted for p in self.catalog_platforms)
