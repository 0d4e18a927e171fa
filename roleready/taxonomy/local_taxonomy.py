from __future__ import annotations

import json
from collections import defaultdict
from pathlib import Path

from .provider import TaxonomyProvider

_SYNONYMS_FILE = Path(__file__).with_name("synonyms.json")


def _key(value: str) -> str:
    return " ".join(value.lower().split())


class LocalTaxonomy(TaxonomyProvider):
    """Alias table shipped with the package (alias -> catalog skill name)."""

    def __init__(self, synonyms_path: str | Path | None = None) -> None:
        raw = json.loads(Path(synonyms_path or _SYNONYMS_FILE).read_text(encoding="utf-8"))
        self._canonical = {_key(str(alias)): str(name) for alias, name in raw.items()}
        self._aliases: dict[str, list[str]] = defaultdict(list)
        for alias, name in self._canonical.items():
            self._aliases[_key(name)].append(alias)

    def canonical_name(self, raw: str) -> str | None:
        return self._canonical.get(_key(raw or ""))

    def aliases_for(self, canonical: str) -> list[str]:
        return list(self._aliases.get(_key(canonical or ""), []))
