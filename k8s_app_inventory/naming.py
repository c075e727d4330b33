"""Derive canonical application names from raw deployment names.

Charts and gitops tooling name deployments in several overlapping ways:

* helm prefixes the release namespace: ``jx-staging-myapp``
* Jenkins X prefixes ``jx-`` regardless of namespace: ``jx-myapp``
* helm 3 charts often repeat the name: ``myapp-myapp``

``normalize`` undoes all three.  The order is: namespace prefixes, then the
``jx-`` organisational prefix, then the stutter collapse, so that
``jx-myapp-myapp`` resolves to ``myapp``.
"""

from __future__ import annotations

import re

ORG_PREFIX = "jx-"

# Kubernetes DNS-1123 label limit.
MAX_NAME_LENGTH = 63

_INVALID_CHARS = re.compile(r"[^a-z0-9]+")


def to_valid_name(name: str) -> str:
    """Lower-case *name* and turn every run of invalid characters into ``-``."""
    valid = _INVALID_CHARS.sub("-", name.lower()).strip("-")
    return valid[:MAX_NAME_LENGTH].rstrip("-")


def _collapse_stutter(name: str) -> str:
    """Turn ``X-X`` into ``X``; anything else is returned unchanged."""
    if not name:
        return name
    mid = len(name) // 2
    if name[mid] == "-" and name[:mid] == name[mid + 1 :]:
        return name[:mid]
    return name


def normalize(name: str, *prefixes: str) -> str:
    """Return the application name for a raw deployment or selector name.

    Each of *prefixes* (usually the environment namespace) is stripped when the
    name starts with ``<prefix>-``.
    """
    if not name:
        return name
    for prefix in prefixes:
        if prefix and name.startswith(prefix + "-"):
            name = name[len(prefix) + 1 :]
    if name.startswith(ORG_PREFIX):
        name = name[len(ORG_PREFIX) :]
    return _collapse_stutter(name)


def normalize_edit_name(name: str) -> str:
    """Name shown for Edit environments, where only the stutter applies."""
    return _collapse_stutter(name)
