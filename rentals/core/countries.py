"""Read-only ISO 3166 alpha-2 country directory."""
from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

import pycountry


class CountryDirectory:
    """Immutable ``code -> display name`` lookup, keyed by lower-case code."""

    def __init__(self, names: Mapping[str, str]) -> None:
        self._names = MappingProxyType({code.lower(): name for code, name in names.items()})
        self._codes: Tuple[str, ...] = tuple(sorted(self._names))

    @classmethod
    def from_pycountry(cls) -> "CountryDirectory":
        return cls({country.alpha_2: country.name for country in pycountry.countries})

    def is_valid_code(self, code: Optional[str]) -> bool:
        if not code or len(code) != 2:
            return False
        return code.lower() in self._names

    def display_name(self, code: Optional[str]) -> str:
        if not code:
            return ""
        return self._names.get(code.lower(), "")

    def all_codes(self) -> Tuple[str, ...]:
        return self._codes

    def codes_with_name_prefix(self, query: str) -> Iterable[str]:
        """Codes whose display name starts with ``query``, ignoring case."""
        # Lower-case once here, not per comparison.
        query = query.lower()
        return [code for code in self._codes if self._names[code].lower().startswith(query)]

    def __len__(self) -> int:
        return len(self._codes)


@lru_cache(maxsize=1)
def get_country_directory() -> CountryDirectory:
    return CountryDirectory.from_pycountry()


__all__ = ["CountryDirectory", "get_country_directory"]
