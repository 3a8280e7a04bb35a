"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (THREEDOCS__BROWSER__TIMEOUT_MS=60000)
  3. threedocs.yaml         (searched in cwd, then platform config dir)
  4. Hardcoded defaults

The two run toggles keep their short names: DEV_MODE=true limits the run to
``run.dev_page_limit`` pages and NO_CACHE=true bypasses the page cache.

The config file is optional. A Settings instance is built once by the entry
point and handed to each component; nothing below the CLI reads the
environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CACHE_DIR = platformdirs.user_cache_dir("threedocs")


def _find_config_file() -> str | None:
    """Return the path of the first threedocs.yaml found, or None."""
    candidates = [
        Path("threedocs.yaml"),
        Path(platformdirs.user_config_dir("threedocs")) / "threedocs.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class SiteSettings(BaseModel):
    base_url: str = "https://threejs.org"
    docs_url: str = "https://threejs.org/docs/index.html#manual/en/introduction/Creating-a-scene"
    title: str = "Three.js Documentation"


class SelectorSettings(BaseModel):
    panel: str = "#panel"
    doc_links: str = '#panel a[href*="/en/"]'
    iframe: str = "iframe"
    manual_content: str = ".manual-content"
    # Top-level body children with this id are left out of the fallback region
    excluded_button_id: str = "button"


class BrowserSettings(BaseModel):
    headless: bool = True
    timeout_ms: int = 30_000
    args: list[str] = ["--no-sandbox"]


class DiscoverySettings(BaseModel):
    max_attempts: int = 2
    retry_delay_seconds: float = 1.0


class CacheSettings(BaseModel):
    dir: str = _DEFAULT_CACHE_DIR
    version: str = "1"


class OutputSettings(BaseModel):
    dir: str = "docs"
    filename: str = "index.html"


class RunSettings(BaseModel):
    dev_page_limit: int = 10
    isolate_page_failures: bool = False


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: THREEDOCS__OUTPUT__DIR=site
        env_prefix="THREEDOCS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    dev_mode: bool = Field(default=False, validation_alias=AliasChoices("dev_mode", "DEV_MODE"))
    no_cache: bool = Field(default=False, validation_alias=AliasChoices("no_cache", "NO_CACHE"))

    site: SiteSettings = SiteSettings()
    selectors: SelectorSettings = SelectorSettings()
    browser: BrowserSettings = BrowserSettings()
    discovery: DiscoverySettings = DiscoverySettings()
    cache: CacheSettings = CacheSettings()
    output: OutputSettings = OutputSettings()
    run: RunSettings = RunSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def page_limit(self) -> int | None:
        """Maximum number of pages to extract, or None for the full manual."""
        return self.run.dev_page_limit if self.dev_mode else None

    @property
    def cache_enabled(self) -> bool:
        return not self.no_cache

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
        )
