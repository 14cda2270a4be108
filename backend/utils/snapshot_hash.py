"""Snapshot hashing so a client can check its mirror against the server's copy."""

import hashlib
import json
from typing import Any


def hash_snapshot(snapshot: dict[str, Any]) -> str:
    """
    Deterministic 16-hex-char digest of the {sessions, teams} tree.

    Only the two broadcast keys are hashed; key order never matters.
    """
    tree = {"sessions": snapshot.get("sessions", {}), "teams": snapshot.get("teams", {})}
    serialized = json.dumps(tree, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:16]
