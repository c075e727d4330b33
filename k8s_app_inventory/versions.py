"""Best-effort version extraction from resource labels.

Deployments are labelled inconsistently: plain ``version`` labels, helm 2
``chart`` labels (``myapp-1.2.3``) and Knative serving revisions
(``myapp-00042``).  The rules below are probed in order and the first one
that yields a value wins.  No semver validation is performed.
"""

from __future__ import annotations

from typing import Callable

VERSION_LABEL = "version"
CHART_LABEL = "chart"
REVISION_LABEL = "serving.knative.dev/revision"


def _from_version(value: str) -> str:
    return value


def _from_chart(value: str) -> str:
    last = value.split("-")[-1]
    return last or value


def _from_revision(value: str) -> str:
    idx = value.rfind("-")
    if idx > 0:
        return value[idx + 1 :]
    return value


VERSION_RULES: list[tuple[str, Callable[[str], str]]] = [
    (VERSION_LABEL, _from_version),
    (CHART_LABEL, _from_chart),
    (REVISION_LABEL, _from_revision),
]


def extract_version(labels: dict[str, str] | None) -> str:
    """Return the version implied by *labels*, or ``""`` if none can be found."""
    if not labels:
        return ""
    for key, extract in VERSION_RULES:
        value = labels.get(key, "")
        if value:
            return extract(value)
    return ""
