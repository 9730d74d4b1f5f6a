"""Runtime settings for georeview.

Values come from (lowest to highest precedence) built-in defaults, an
optional YAML settings file, and environment variables. A ``.env`` file in
the working directory or project root is loaded into the environment first.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_HOME = Path.home() / ".georeview"

# Storage keys shared with the browser userscript's localStorage layout
CREDENTIALS_KEY = "geoguessr_ai_keys"
CACHE_PREFIX = "georeview"

NARROW_FIELD_MODE = "NmpzDuels"


def load_env() -> Optional[Path]:
    """Load a .env file from the current directory or the project root."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        return env_path
    return None


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one process."""
    model: str = DEFAULT_MODEL
    store_path: Path = DEFAULT_HOME / "store.json"
    image_timeout_s: float = 30.0
    model_timeout_s: float = 180.0
    max_workers: int = 6
    temperature: Optional[float] = None


_ENV_FIELDS = {
    "GEOREVIEW_MODEL": ("model", str),
    "GEOREVIEW_STORE": ("store_path", Path),
    "GEOREVIEW_IMAGE_TIMEOUT_S": ("image_timeout_s", float),
    "GEOREVIEW_MODEL_TIMEOUT_S": ("model_timeout_s", float),
    "GEOREVIEW_MAX_WORKERS": ("max_workers", int),
    "GEOREVIEW_TEMPERATURE": ("temperature", float),
}

_FILE_FIELDS = {name: conv for name, conv in _ENV_FIELDS.values()}


def _read_config_file(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    overrides = {}
    for key, value in data.items():
        conv = _FILE_FIELDS.get(key)
        if conv is None:
            logger.warning(f"Ignoring unknown config key '{key}' in {path}")
            continue
        if value is None:
            continue
        overrides[key] = conv(value)
    return overrides


def load_settings(config_path: str | Path | None = None, *, environ=None) -> Settings:
    """Build Settings from defaults, the YAML config file and the environment.

    Args:
        config_path: Explicit YAML file. Falls back to GEOREVIEW_CONFIG, then
            ~/.georeview/config.yml if it exists.
        environ: Mapping to read variables from (defaults to os.environ)
    """
    env = os.environ if environ is None else environ
    settings = Settings()

    path = config_path or env.get("GEOREVIEW_CONFIG")
    if path:
        path = Path(path).expanduser()
    elif (DEFAULT_HOME / "config.yml").exists():
        path = DEFAULT_HOME / "config.yml"

    if path:
        settings = replace(settings, **_read_config_file(path))
        logger.debug(f"Loaded settings from {path}")

    overrides = {}
    for var, (name, conv) in _ENV_FIELDS.items():
        raw = env.get(var)
        if raw is not None and str(raw).strip() != "":
            overrides[name] = conv(raw.strip())
    if overrides:
        settings = replace(settings, **overrides)

    return replace(settings, store_path=Path(settings.store_path).expanduser())


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
