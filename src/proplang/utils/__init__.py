"""
Proplang utilities package
"""

from .io_utils import read_source_file, write_artifact

__all__ = ["read_source_file", "write_artifact"]
