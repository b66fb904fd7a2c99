"""Utilities for reading and writing the ~/.taskbridge/.env file."""

from __future__ import annotations

from pathlib import Path

from taskbridge.config.constants import ENV_FILE


def write_env_key(env_key: str, value: str, env_path: Path | None = None) -> None:
    """Write or update a key in the .env file.

    Parameters
    ----------
    env_key:
        The environment variable name (e.g. ``OPENSERV_API_KEY``).
    value:
        The value to store.
    env_path:
        Override .env location (default: ``~/.taskbridge/.env``).
    """
    if env_path is None:
        env_path = ENV_FILE
    env_path.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    if env_path.exists():
        lines = env_path.read_text(encoding="utf-8").splitlines()

    prefix = f"{env_key}="
    for i, line in enumerate(lines):
        if line.startswith(prefix):
            lines[i] = prefix + value
            break
    else:
        lines.append(prefix + value)

    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def read_env_file(env_path: Path | None = None) -> dict[str, str]:
    """Parse the .env file and return key-value pairs.

    Strips inline comments (``# ...``), surrounding quotes and whitespace.
    """
    if env_path is None:
        env_path = ENV_FILE

    result: dict[str, str] = {}
    if not env_path.exists():
        return result

    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, _, v = line.partition("=")
            if " #" in v:
                v = v[: v.index(" #")]
            v = v.strip()
            if len(v) >= 2 and v[0] == v[-1] and v[0] in "\"'":
                v = v[1:-1]
            result[k.strip()] = v
    except OSError:
        pass

    return result
