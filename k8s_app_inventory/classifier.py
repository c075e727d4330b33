"""Tell canary-controller auxiliary deployments apart from primary ones."""

from __future__ import annotations

from typing import Any

# Kind of the owner object Flagger sets on the deployments it generates.
CANARY_OWNER_KIND = "Canary"


def is_canary_auxiliary(owner_references: list[dict[str, Any]] | None) -> bool:
    """Return True if any owner reference points at a ``Canary`` object.

    Such deployments are created by the canary controller next to the primary
    deployment and must never be matched against an application, otherwise a
    rollout would show up as a duplicate deployment.
    """
    return any(ref.get("kind") == CANARY_OWNER_KIND for ref in owner_references or [])
