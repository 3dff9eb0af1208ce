from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

PROJECT_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


def parse_env_file(path: Path) -> Dict[str, str]:
    """Return the ``KEY=value`` pairs of a dotenv file, quotes stripped."""

    values: Dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key, value = key.strip(), value.strip()
        if not sep or not key:
            continue
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        values[key] = value
    return values


def load_env(path: Optional[Path] = None) -> None:
    """Fill ``os.environ`` from the project dotenv files.

    ``.env.local`` overrides ``.env`` and is only read for the default
    location. Variables set in the shell are never replaced.
    """

    env_path = path or PROJECT_ENV_FILE
    files = [env_path] if path is not None else [env_path, env_path.parent / ".env.local"]

    merged: Dict[str, str] = {}
    for env_file in files:
        if env_file.exists():
            merged.update(parse_env_file(env_file))

    for key, value in merged.items():
        os.environ.setdefault(key, value)


__all__ = ["load_env", "parse_env_file"]
