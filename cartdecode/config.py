from __future__ import annotations

import base64
import binascii
import configparser
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import CONFIG_ENV, CONFIG_SECTION, DEFAULT_CONFIG_PATH, DEFAULT_KEY, DEFAULT_MAX_OUTPUT_SIZE, KEY_SIZE
from .errors import ConfigError


@dataclass
class CartConfig:
    key: bytes = DEFAULT_KEY
    max_output_size: Optional[int] = DEFAULT_MAX_OUTPUT_SIZE
    source: Optional[str] = None


def config_path(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return os.path.expanduser(env.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH)


def load_config(path: Optional[str] = None) -> CartConfig:
    """Load ``[global]`` settings from an INI file.

    A missing file yields the built-in defaults. Recognised keys:

    - ``rc4_key``: base64 of a 16-byte key.
    - ``max_output_size``: decompressed size limit in bytes; 0 disables it.
    """
    path = path or config_path()
    cfg = CartConfig()
    if not os.path.isfile(path):
        return cfg
    parser = configparser.ConfigParser()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            parser.read_file(fh)
    except (OSError, configparser.Error) as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    cfg.source = path
    if not parser.has_section(CONFIG_SECTION):
        return cfg
    section = parser[CONFIG_SECTION]

    encoded = section.get("rc4_key")
    if encoded:
        try:
            key = base64.b64decode(encoded.strip(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ConfigError(f"{path}: rc4_key is not valid base64") from exc
        if len(key) != KEY_SIZE:
            raise ConfigError(f"{path}: rc4_key must decode to {KEY_SIZE} bytes, got {len(key)}")
        cfg.key = key

    if section.get("max_output_size") is not None:
        try:
            limit = section.getint("max_output_size")
        except ValueError as exc:
            raise ConfigError(f"{path}: max_output_size must be an integer") from exc
        if limit < 0:
            raise ConfigError(f"{path}: max_output_size must be >= 0")
        cfg.max_output_size = limit or None
    return cfg
