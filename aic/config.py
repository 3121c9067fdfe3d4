"""
Layered configuration: defaults < global file < project file < AIC_* env vars.

The global file lives in the per-user config directory; the project file is
the nearest `.aic.toml` between the working directory and the git repository
root. Both are plain TOML and are rewritten whole on every change.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Literal

import tomli_w
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from aic.constants import (
    CONFIG_KEYS,
    DEFAULT_API_BASE_URL,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_USER_PROMPT,
    GLOBAL_CONFIG_FILE_NAME,
    KEY_ALIASES,
    NOT_SET,
    PROJECT_CONFIG_FILE_NAME,
    SECRET_KEYS,
)
from aic.core import GitRepository
from aic.errors import ConfigLocationError, ConfigParseError, GitError, UnknownKeyError
from aic.schemas import ConfigEntry, Configuration
from aic.utils import CONFIG_DIR, mask_token

logger = logging.getLogger(__name__)

Scope = Literal["global", "project"]

DEFAULTS = Configuration(
    api_base_url=DEFAULT_API_BASE_URL,
    model=DEFAULT_MODEL,
    system_prompt=DEFAULT_SYSTEM_PROMPT,
    user_prompt=DEFAULT_USER_PROMPT,
)


class EnvOverrides(BaseSettings):
    """
    Reads AIC_* environment variables. They override both config files.
    """

    api_token: str | None = None
    api_base_url: str | None = None
    model: str | None = None
    system_prompt: str | None = None
    user_prompt: str | None = None

    model_config = SettingsConfigDict(env_prefix="AIC_", extra="ignore")


def normalize_key(key: str) -> str:
    """Maps aliases to canonical names; raises UnknownKeyError otherwise."""
    canonical = KEY_ALIASES.get(key, key)
    if canonical not in CONFIG_KEYS:
        raise UnknownKeyError(key)
    return canonical


def merge(base: Configuration, override: Configuration) -> Configuration:
    """Returns `base` with every non-null value of `override` applied."""
    return base.model_copy(update=override.model_dump(exclude_none=True))


def _read_raw(path: Path) -> dict:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(path, str(e)) from e
    except OSError as e:
        raise ConfigParseError(path, e.strerror or str(e)) from e


def read_config_file(path: Path) -> Configuration:
    """Loads one layer. A missing file is an empty layer, not an error."""
    raw = _read_raw(path)
    unknown = sorted(set(raw) - set(CONFIG_KEYS) - set(KEY_ALIASES))
    if unknown:
        logger.warning(f"Ignoring unknown keys in '{path}': {', '.join(unknown)}")
    try:
        return Configuration.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigParseError(path, problems) from e


def _write_raw(path: Path, data: dict):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as f:
            tomli_w.dump(data, f)
    except OSError as e:
        raise ConfigLocationError(
            f"Could not write config file '{path}': {e.strerror or e}"
        ) from e


class ConfigStore:
    def __init__(
        self,
        global_path: Path | str | None = None,
        start_dir: Path | str | None = None,
        env: EnvOverrides | None = None,
    ):
        self.global_path = (
            Path(global_path) if global_path else CONFIG_DIR / GLOBAL_CONFIG_FILE_NAME
        )
        self.start_dir = Path(start_dir or Path.cwd()).resolve()
        self._env = env

    @property
    def env(self) -> EnvOverrides:
        if self._env is None:
            self._env = EnvOverrides()
        return self._env

    # --- Discovery ---

    def _walk_up(self):
        """Yields directories from start_dir up to (and including) the git root."""
        for directory in (self.start_dir, *self.start_dir.parents):
            yield directory
            if (directory / ".git").exists():
                return

    def find_project_config(self) -> Path | None:
        for directory in self._walk_up():
            candidate = directory / PROJECT_CONFIG_FILE_NAME
            if candidate.is_file():
                return candidate
        return None

    def find_repository_boundary(self) -> Path | None:
        """Working tree root of the repository enclosing start_dir, if any."""
        try:
            return Path(GitRepository(str(self.start_dir)).repository_root())
        except GitError:
            return None

    @property
    def project_path(self) -> Path | None:
        return self.find_project_config()

    def _target_path(self, scope: Scope) -> Path:
        if scope == "global":
            return self.global_path
        if scope == "project":
            existing = self.find_project_config()
            if existing:
                return existing
            root = self.find_repository_boundary()
            if root is None:
                raise ConfigLocationError(
                    f"No git repository found above '{self.start_dir}'; "
                    "cannot create a project config file."
                )
            return root / PROJECT_CONFIG_FILE_NAME
        raise ValueError(f"Invalid scope '{scope}'")

    # --- Reading ---

    def _layers(self) -> list[tuple[str, Configuration, Path | None]]:
        layers: list[tuple[str, Configuration, Path | None]] = [
            ("default", DEFAULTS, None),
            ("global", read_config_file(self.global_path), self.global_path),
        ]
        project_path = self.find_project_config()
        if project_path:
            layers.append(("project", read_config_file(project_path), project_path))
        env_values = self.env.model_dump(exclude_none=True)
        if env_values:
            layers.append(("env", Configuration(**env_values), None))
        return layers

    def load(self) -> Configuration:
        """Returns the merged configuration. Later layers win per key."""
        merged = Configuration()
        for _, layer, _ in self._layers():
            merged = merge(merged, layer)
        return merged

    def get(self, key: str) -> str | None:
        return getattr(self.load(), normalize_key(key))

    def list(self) -> dict[str, str]:
        """All resolved values, ready for display. Secrets are masked."""
        config = self.load()
        return {
            key: self._display_value(key, getattr(config, key)) for key in CONFIG_KEYS
        }

    def show(self) -> list[ConfigEntry]:
        """Resolved values with the layer (and file) each one came from."""
        layers = self._layers()
        entries = []
        for key in CONFIG_KEYS:
            entry = ConfigEntry(key=key, value=NOT_SET, source="unset")
            for source, layer, path in layers:
                value = getattr(layer, key)
                if value is not None:
                    entry = ConfigEntry(
                        key=key,
                        value=self._display_value(key, value),
                        source=source,
                        path=str(path) if path else None,
                    )
            entries.append(entry)
        return entries

    @staticmethod
    def _display_value(key: str, value: str | None) -> str:
        if key in SECRET_KEYS:
            return mask_token(value)
        return NOT_SET if value is None else value

    # --- Writing ---

    def set(self, key: str, value: str | None, scope: Scope = "global") -> Path:
        """Persists one key to the chosen file. `None` removes the key."""
        return self.update({key: value}, scope=scope)

    def update(self, values: dict[str, str | None], scope: Scope = "global") -> Path:
        """Persists several keys in one whole-file rewrite."""
        normalized = {normalize_key(key): value for key, value in values.items()}
        path = self._target_path(scope)
        data = _read_raw(path)

        for key, value in normalized.items():
            for alias, canonical in KEY_ALIASES.items():
                if canonical == key:
                    data.pop(alias, None)
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value

        _write_raw(path, data)
        logger.info(f"Updated {', '.join(normalized)} in {scope} config '{path}'")
        return path
