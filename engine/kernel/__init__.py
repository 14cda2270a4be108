"""
coLoc Kernel: the pure engine.

Components:
  types    phases, action names, Card / ExperimentDefinition, ActionResult
  reducer  (state, type, payload) → ActionResult  (pure, never raises)
  store    GameStore, the owned cell holding the current snapshot
  events   {type, payload} envelope factories
  catalog  bundled read-only card and experiment tables
"""

from engine.kernel.catalog import Catalog, CatalogError, load_catalog
from engine.kernel.reducer import apply_action, compute_time_cost, empty_state, replay
from engine.kernel.store import GameStore
from engine.kernel.types import ACTION_TYPES, ActionResult, Card, ExperimentDefinition

__all__ = [
    "apply_action",
    "replay",
    "empty_state",
    "compute_time_cost",
    "GameStore",
    "ActionResult",
    "ACTION_TYPES",
    "Card",
    "ExperimentDefinition",
    "Catalog",
    "CatalogError",
    "load_catalog",
]
