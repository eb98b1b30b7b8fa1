"""modforge — Configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. Environment variables prefixed with MODFORGE_
    3. User config:    ~/.modforge/config.yaml
    4. Project config: <project root>/.modforge.yaml
    5. Explicit file passed with ``--config``

Top-level blocks found in a YAML file replace the environment's value for
that block as a whole.

All settings are immutable after load.  Call ``Settings.load()`` once at
CLI startup and hand the instance to the orchestrator.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from modforge.exceptions import ConfigError

PROJECT_CONFIG_NAME = ".modforge.yaml"


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class LayoutConfig(BaseModel):
    """Path and naming conventions of the host monorepo."""

    package_names: dict[str, str] = Field(
        default_factory=lambda: {"client": "client-react", "server": "server-ts"},
        description="Package directory used for each module kind in the current layout.",
    )
    package_scope: str = Field(
        default="@gqlapp",
        description="npm scope of module packages in the current layout.",
    )
    templates_dir: Path = Field(
        default=Path("tools/templates"),
        description="Template root, relative to the project root.",
    )
    legacy_templates: str = "module"
    current_templates: str = "new-module"
    registry_extensions: list[str] = Field(
        default_factory=lambda: [".ts", ".tsx", ".js", ".jsx"],
        min_length=1,
        description="Extensions tried, in order, when locating the registry artifact.",
    )
    version_range: str = Field(
        default="^1.0.0",
        description="Version constraint written for new module dependencies.",
    )

    @field_validator("package_scope")
    @classmethod
    def _scope_has_at(cls, v: str) -> str:
        if v and not v.startswith("@"):
            return f"@{v}"
        return v


class ManifestConfig(BaseModel):
    match: Literal["exact", "substring"] = Field(
        default="exact",
        description=(
            "How remove_dependency identifies entries. 'substring' reproduces the "
            "historic behaviour and may also drop packages sharing a prefix."
        ),
    )


class FormatterConfig(BaseModel):
    enabled: bool = True
    command: list[str] = Field(
        default_factory=lambda: ["npx", "prettier", "--write"],
        description="Command run on every rewritten artifact; the file path is appended.",
    )
    timeout_seconds: Annotated[float, Field(ge=1.0, le=600.0)] = 60.0


class LockConfig(BaseModel):
    filename: str = ".modforge.lock"
    timeout_seconds: Annotated[float, Field(ge=0.0, le=3600.0)] = Field(
        default=10.0,
        description="Seconds to wait for a concurrent run to release the project lock.",
    )


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "warning"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MODFORGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    formatter: FormatterConfig = Field(default_factory=FormatterConfig)
    lock: LockConfig = Field(default_factory=LockConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(
        cls, root: Path | None = None, config_file: Path | None = None
    ) -> "Settings":
        """Load settings from files + environment variables.

        Raises:
            ConfigError: A file is unreadable, is not a YAML mapping, or
                holds values that fail validation.
        """
        data: dict[str, object] = {}

        candidates = [Path.home() / ".modforge" / "config.yaml"]
        if root is not None:
            candidates.append(root / PROJECT_CONFIG_NAME)
        if config_file:
            candidates.append(config_file)

        source: Path | None = None
        for path in candidates:
            if path.exists():
                import yaml

                try:
                    with path.open() as f:
                        loaded = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as exc:
                    raise ConfigError(str(exc), path) from exc
                if not isinstance(loaded, dict):
                    raise ConfigError("top level must be a mapping", path)
                data.update(loaded)
                source = path

        try:
            return cls(**data)
        except ValidationError as exc:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()
            )
            raise ConfigError(errors, source) from exc


# Module-level singleton, replaced by ``Settings.load()`` at CLI startup.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used by the CLI and in tests."""
    global _settings
    _settings = settings
