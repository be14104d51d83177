"""
Centralized file I/O utilities.

- Single place for encoding handling
- Use Path.read_text()/write_text() consistently (no raw open/read)
- OSError becomes ArtifactIOError so stages abort with an IoFailure diagnostic
"""

from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING
from ..shared.errors import ArtifactIOError


def read_source_file(path: Union[Path, str]) -> str:
    """Read source or artifact file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    try:
        return p.read_text(encoding=DEFAULT_FILE_ENCODING)
    except FileNotFoundError as e:
        raise ArtifactIOError(f"file not found: {p}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactIOError(f"could not read {p}: {e}") from e


def write_artifact(path: Union[Path, str], text: str) -> Path:
    """Write artifact text, creating the parent directory if needed."""
    p = Path(path) if not isinstance(path, Path) else path
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding=DEFAULT_FILE_ENCODING)
    except OSError as e:
        raise ArtifactIOError(f"could not write {p}: {e}") from e
    return p
