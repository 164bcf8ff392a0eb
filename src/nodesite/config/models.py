"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, nodesite.toml only contains overrides.
A checkout of the website repository builds with no config file at all.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

# --- nodesite.toml sections ---


class SiteConfig(BaseModel):
    """[site] section — repository-relative input and output locations."""

    model_config = {"frozen": True}

    content_dir: str = "content"
    output_dir: str = "public"
    learn_navigation: str = "src/data/learn.yaml"
    api_navigation: str = "src/data/apiTypes.yaml"
    locales_dir: str = "src/i18n/locales"
    redirects_file: str = "redirects.json"


class PathsConfig(BaseModel):
    """[paths] section — URL roots for the routed content sections."""

    model_config = {"frozen": True}

    learn: str = "/learn/"
    api: str = "/api/"
    blog: str = "/blog/"

    @field_validator("learn", "api", "blog")
    @classmethod
    def _slash_wrapped(cls, value: str) -> str:
        if not value.startswith("/") or not value.endswith("/"):
            msg = f"URL root must start and end with '/': {value!r}"
            raise ValueError(msg)
        return value


class I18nConfig(BaseModel):
    """[i18n] section."""

    model_config = {"frozen": True}

    default_locale: str = "en"
    locales: list[str] = Field(default_factory=lambda: ["en"])

    @model_validator(mode="after")
    def _default_is_listed(self) -> I18nConfig:
        if self.default_locale not in self.locales:
            msg = f"default_locale {self.default_locale!r} is not in locales {self.locales}"
            raise ValueError(msg)
        return self


class NavigationConfig(BaseModel):
    """[navigation] section."""

    model_config = {"frozen": True}

    strict: bool = False


class SourcesConfig(BaseModel):
    """[sources] section — external dataset endpoints."""

    model_config = {"frozen": True}

    release_schedule_url: str = (
        "https://raw.githubusercontent.com/nodejs/Release/main/schedule.json"
    )
    release_index_url: str = "https://nodejs.org/dist/index.json"
    banners_url: str = "https://nodejs.org/site.json"
    nvm_url: str = "https://api.github.com/repos/nvm-sh/nvm/releases/latest"
    timeout: float = 30.0


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    content_fields: dict[str, Any] = Field(default_factory=lambda: {"enabled": True})
    locale_messages: dict[str, Any] = Field(default_factory=lambda: {"enabled": True})
