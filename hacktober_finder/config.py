"""Configuration constants and user settings for the explorer."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping

CONFIG_PATH = Path.home() / ".hacktober-config.json"
LOG_DIR = Path.home() / ".hacktober" / "logs"

# Search criteria
DEFAULT_TOPIC = "hacktoberfest"
DEFAULT_MIN_STARS = 20
DEFAULT_LANGUAGES = ("Go", "JavaScript", "Python", "TypeScript")
DEFAULT_MAX_REPOS = 50
DEFAULT_MAX_ISSUES = 20

# GitHub API page size limit
API_MAX_PER_PAGE = 100

# Issue difficulty label rules, checked in order; first match per label wins
EASY_LABEL_WORDS = ("good first issue", "beginner", "easy")
HELP_WANTED_LABEL = "help wanted"
HARD_LABEL_WORDS = ("hard", "difficult", "expert")
BUG_LABEL = "bug"
FEATURE_LABEL = "feature"

# Display limits
DESCRIPTION_PREVIEW_CHARS = 100
BODY_PREVIEW_CHARS = 500
TOP_LABELS_SHOWN = 10


class ConfigError(Exception):
    pass


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass
class Settings:
    """User preferences, read once at startup."""

    github_token: str = ""
    preferred_languages: list[str] = field(default_factory=lambda: list(DEFAULT_LANGUAGES))
    skill_level: SkillLevel = SkillLevel.INTERMEDIATE
    max_repos: int = DEFAULT_MAX_REPOS
    max_issues_per_repo: int = DEFAULT_MAX_ISSUES
    min_stars: int = DEFAULT_MIN_STARS
    topic: str = DEFAULT_TOPIC
    drop_stale_completions: bool = False

    @classmethod
    def from_dict(cls, data: Mapping) -> "Settings":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        settings = cls(**known)
        try:
            if not isinstance(settings.skill_level, SkillLevel):
                settings.skill_level = SkillLevel(str(settings.skill_level).lower())
        except ValueError as e:
            raise ConfigError(f"Unknown skill level: {settings.skill_level}") from e
        if isinstance(settings.preferred_languages, str):
            settings.preferred_languages = split_languages(settings.preferred_languages)
        settings.preferred_languages = [str(lang) for lang in settings.preferred_languages or []]
        return settings

    def to_dict(self) -> dict:
        d = asdict(self)
        d["skill_level"] = self.skill_level.value
        return d

    def save(self, path: Path | None = None) -> Path:
        path = path or CONFIG_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        return path

    def validate(self) -> None:
        if not self.github_token:
            raise ConfigError(
                "No GitHub token found. Set GITHUB_TOKEN or add github_token to "
                f"{CONFIG_PATH}."
            )
        if self.max_repos <= 0:
            raise ConfigError(f"max_repos must be positive, got {self.max_repos}")
        if self.max_issues_per_repo <= 0:
            raise ConfigError(f"max_issues_per_repo must be positive, got {self.max_issues_per_repo}")
        if self.min_stars < 0:
            raise ConfigError(f"min_stars must not be negative, got {self.min_stars}")


def split_languages(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_settings(path: Path | None = None, *, environ: Mapping[str, str] | None = None) -> Settings:
    """Defaults, overlaid by the JSON config file, overlaid by GITHUB_TOKEN."""
    environ = os.environ if environ is None else environ
    path = path or CONFIG_PATH

    data: dict = {}
    if path.exists():
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

    settings = Settings.from_dict(data)

    token = environ.get("GITHUB_TOKEN")
    if token:
        settings.github_token = token
    return settings
