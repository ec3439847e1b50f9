"""Paths to data files that sit next to the running program."""

from __future__ import annotations

import functools
import os
import sys


@functools.lru_cache(maxsize=None)
def _program_dir() -> str:
    program = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if program and os.path.exists(program):
        return os.path.dirname(os.path.realpath(program))
    return os.getcwd()


def data_path(suffix: str) -> str:
    """Join ``suffix`` onto the directory of the running program."""
    return _program_dir() + "/" + suffix