# ABOUTME: Application settings persisted as JSON values in the settings table.
# ABOUTME: AppSettings carries documented defaults; unknown keys and bad values are rejected.

import json
from dataclasses import asdict, dataclass, fields
from typing import Any

from maibuk.db.adapter import DatabaseAdapter
from maibuk.db.books import Clock, utc_now
from maibuk.db.mapping import to_timestamp

FONT_SIZES = (14, 16, 18, 20)
FONTS = ("serif", "sans", "mono")
LANGUAGES = ("en", "es")
EXPORT_FORMATS = ("epub", "print")


@dataclass
class AppSettings:
    """User-facing application settings with their defaults."""

    app_font_size: int = 16
    app_font: str = "sans"
    auto_save: bool = True
    auto_save_delay: float = 1.0
    language: str = "en"
    default_export_format: str = "epub"
    last_path: str | None = None

    def __post_init__(self) -> None:
        if self.app_font_size not in FONT_SIZES:
            raise ValueError(f"app_font_size must be one of {FONT_SIZES}")
        if self.app_font not in FONTS:
            raise ValueError(f"app_font must be one of {FONTS}")
        if self.language not in LANGUAGES:
            raise ValueError(f"language must be one of {LANGUAGES}")
        if self.default_export_format not in EXPORT_FORMATS:
            raise ValueError(f"default_export_format must be one of {EXPORT_FORMATS}")
        if self.auto_save_delay < 0:
            raise ValueError("auto_save_delay must not be negative")


SETTING_KEYS = frozenset(f.name for f in fields(AppSettings))


class SettingsRepository:
    """Key-value access to the settings table, typed through AppSettings."""

    def __init__(self, adapter: DatabaseAdapter, *, clock: Clock = utc_now) -> None:
        self._adapter = adapter
        self._clock = clock

    async def load(self) -> AppSettings:
        """Read all known settings, falling back to defaults for missing keys."""
        rows = await self._adapter.select("SELECT key, value FROM settings")
        stored = {
            row["key"]: json.loads(row["value"]) for row in rows if row["key"] in SETTING_KEYS
        }
        return AppSettings(**stored)

    async def save(self, settings: AppSettings) -> None:
        """Write every setting."""
        for key, value in asdict(settings).items():
            await self._write(key, value)

    async def get(self, key: str) -> Any:
        """Read one setting (its default if never written).

        Raises:
            KeyError: If key is not a known setting.
        """
        if key not in SETTING_KEYS:
            raise KeyError(key)
        return getattr(await self.load(), key)

    async def set(self, key: str, value: Any) -> AppSettings:
        """Validate and write one setting.

        Raises:
            KeyError: If key is not a known setting.
            ValueError: If the value is rejected by AppSettings.
        """
        if key not in SETTING_KEYS:
            raise KeyError(key)
        current = asdict(await self.load())
        current[key] = value
        updated = AppSettings(**current)
        await self._write(key, value)
        return updated

    async def _write(self, key: str, value: Any) -> None:
        await self._adapter.execute(
            "INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
            "updated_at = excluded.updated_at",
            (key, json.dumps(value), to_timestamp(self._clock())),
        )
