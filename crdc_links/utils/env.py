"""Environment loading helpers for the archive and registry integrations."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_env_file(dotenv_path: Optional[Path] = None, *, override: bool = False) -> bool:
    """Load environment variables from ``.env`` into ``os.environ``.

    Parameters
    ----------
    dotenv_path:
        Explicit location of the environment file. Defaults to ``Path.cwd() / ".env"``.
    override:
        When ``True`` any existing environment variables are overwritten.

    Returns ``True`` when a file was found and loaded.
    """

    path = Path(dotenv_path) if dotenv_path else Path.cwd() / ".env"
    if not path.exists():
        return False
    return load_dotenv(dotenv_path=path, override=override)


__all__ = ["load_env_file"]
