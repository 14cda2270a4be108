"""
coLoc Kernel: Static Catalog

Read-only card and experiment tables shipped with the package.
The reducer never reads these: teams carry card dicts in their payloads and
the core does not check them against the catalog. The catalog exists for
clients, which look cards up by id to build those payloads.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from engine.kernel.types import CARD_CATEGORIES, Card, CardCategory, ExperimentDefinition

CATALOG_PATH = Path(__file__).parent / "data" / "catalog.json"


class CatalogError(Exception):
    """Catalog file is missing, malformed, or has duplicate ids."""
    pass


class Catalog:
    """Cards by id, experiments by number, and the two GM review decks."""

    def __init__(
        self,
        cards: list[Card],
        review_concerns: list[Card],
        review_details: list[Card],
        experiments: list[ExperimentDefinition],
    ) -> None:
        self.cards = cards
        self.review_concerns = review_concerns
        self.review_details = review_details
        self.experiments = experiments

        self._by_id: dict[str, Card] = {}
        for card in [*cards, *review_concerns, *review_details]:
            if card.id in self._by_id:
                raise CatalogError(f"Duplicate card id: {card.id}")
            if card.category not in CARD_CATEGORIES:
                raise CatalogError(f"Card {card.id} has unknown category {card.category!r}")
            self._by_id[card.id] = card

        self._experiments = {e.id: e for e in experiments}
        if len(self._experiments) != len(experiments):
            raise CatalogError("Duplicate experiment id")

    def card(self, card_id: str) -> Card | None:
        return self._by_id.get(card_id)

    def experiment(self, experiment_id: int) -> ExperimentDefinition | None:
        return self._experiments.get(experiment_id)

    def cards_for_category(self, category: CardCategory) -> list[Card]:
        return [c for c in self.cards if c.category == category]

    def to_dict(self) -> dict[str, Any]:
        return {
            "experiments": [e.to_dict() for e in self.experiments],
            "cards": [c.to_dict() for c in self.cards],
            "reviewIssueCards": [c.to_dict() for c in self.review_concerns],
            "reviewDetailsCards": [c.to_dict() for c in self.review_details],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Catalog:
        try:
            return cls(
                cards=[Card.from_dict(c) for c in d.get("cards", [])],
                review_concerns=[Card.from_dict(c) for c in d.get("reviewIssueCards", [])],
                review_details=[Card.from_dict(c) for c in d.get("reviewDetailsCards", [])],
                experiments=[ExperimentDefinition.from_dict(e) for e in d.get("experiments", [])],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Malformed catalog entry: {e}") from e


def load_catalog(path: Path | str | None = None) -> Catalog:
    """
    Load a catalog from JSON. With no path, returns the bundled catalog
    (parsed once and cached).

    Raises:
        CatalogError: If the file can't be read or its contents are invalid
    """
    if path is None:
        return _bundled_catalog()
    return _read_catalog(Path(path))


@lru_cache(maxsize=1)
def _bundled_catalog() -> Catalog:
    return _read_catalog(CATALOG_PATH)


def _read_catalog(path: Path) -> Catalog:
    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog file is not valid JSON: {path}: {e}") from e
    if not isinstance(data, dict):
        raise CatalogError(f"Catalog root must be an object: {path}")
    return Catalog.from_dict(data)
