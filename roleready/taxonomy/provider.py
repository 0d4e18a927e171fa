from __future__ import annotations

from typing import Protocol


class TaxonomyProvider(Protocol):
    def canonical_name(self, raw: str) -> str | None:
        """Catalog name for a known alias ("k8s" -> "Kubernetes"), else None."""

    def aliases_for(self, canonical: str) -> list[str]:
        """Every alias recorded for a catalog skill name."""
