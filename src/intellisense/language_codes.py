"""Language codes accepted as keys of a language map.

The codes are kept as data in ``language_codes.yaml`` and loaded once.
"""

from __future__ import annotations

import functools
from pathlib import Path

import yaml

_LANGUAGE_CODES_PATH = Path(__file__).parent / "language_codes.yaml"


@functools.cache
def _load_language_codes() -> tuple[str, ...]:
    """Load and cache the language code list, preserving file order."""
    with open(_LANGUAGE_CODES_PATH, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    codes: list[str] = []
    for language, regions in data["languages"].items():
        codes.append(language)
        codes.extend(f"{language}-{region}" for region in regions or [])
    return tuple(codes)


def get_language_codes() -> tuple[str, ...]:
    """Return every recognised language code in definition order."""
    return _load_language_codes()


def is_language_code(code: str) -> bool:
    return code in _language_code_set()


@functools.cache
def _language_code_set() -> frozenset[str]:
    return frozenset(_load_language_codes())
