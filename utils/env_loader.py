from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional


ENV_FILE_VARIABLE = "DATASOURCE_ENV_FILE"
DEFAULT_ENV_FILE = ".env"


def parse_env_text(text: str) -> Dict[str, str]:
    """Parse ``KEY=value`` lines; ``export`` prefixes, quotes and ``#`` comments are handled."""
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if value[:1] in {"'", '"'} and value.endswith(value[0]) and len(value) > 1:
            value = value[1:-1]
        elif " #" in value:
            value = value.split(" #", 1)[0].rstrip()
        if key:
            values[key] = value
    return values


def load_environments(env_path: Optional[str] = None) -> Dict[str, str]:
    """Copy variables from the env file into ``os.environ`` without overriding.

    Returns the variables that were actually applied.
    """
    path = Path(env_path or os.getenv(ENV_FILE_VARIABLE) or DEFAULT_ENV_FILE)
    if not path.is_file():
        return {}

    applied: Dict[str, str] = {}
    for key, value in parse_env_text(path.read_text(encoding="utf-8")).items():
        if key not in os.environ:
            os.environ[key] = value
            applied[key] = value
    return applied
