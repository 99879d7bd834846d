# Author: Bradley R. Kinnard
# utility helpers for creature-mind

import json
import hashlib
import logging
from pathlib import Path
from typing import Any

import yaml
import jsonschema

from config.schemas import mind_config_schema


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "mind_config.yaml"


def load_mind_config(path: Path | str = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """load and validate mind config against schema."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"config not found: {path}")

    with open(path, "r") as f:
        config = yaml.safe_load(f)

    jsonschema.validate(instance=config, schema=mind_config_schema)
    logger.info(f"loaded mind config from {path}")
    return config


def default_config() -> dict[str, Any]:
    """load the shipped default config."""
    return load_mind_config(DEFAULT_CONFIG_PATH)


def compute_hash(data: str | bytes) -> str:
    """compute sha256 hash of data."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def canonical_json(data: Any) -> str:
    """stable json encoding for digests."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """get a configured logger. avoids duplicate handlers."""
    log = logging.getLogger(name)
    log.setLevel(level)

    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        )
        handler.setFormatter(formatter)
        log.addHandler(handler)

    return log
