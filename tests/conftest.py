"""Shared test fixtures."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest

from k8s_app_inventory.models import Environment, EnvironmentKind


@pytest.fixture()
def make_deployment() -> Callable[..., dict[str, Any]]:
    """Factory for raw ``apps/v1`` Deployment objects as kubectl returns them."""

    def _make(
        name: str,
        namespace: str = "jx-staging",
        app: str | None = None,
        labels: dict[str, str] | None = None,
        ready: int | None = 1,
        replicas: int | None = 1,
        owner_kind: str = "",
        selector: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if selector is None:
            selector = {"matchLabels": {"app": app if app is not None else name}}
        metadata: dict[str, Any] = {
            "name": name,
            "namespace": namespace,
            "labels": labels or {},
        }
        if owner_kind:
            metadata["ownerReferences"] = [
                {"apiVersion": "flagger.app/v1beta1", "kind": owner_kind, "name": name}
            ]
        spec: dict[str, Any] = {"selector": selector}
        if replicas is not None:
            spec["replicas"] = replicas
        status: dict[str, Any] = {}
        if ready is not None:
            status["readyReplicas"] = ready
        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": metadata,
            "spec": spec,
            "status": status,
        }

    return _make


@pytest.fixture()
def staging() -> Environment:
    return Environment(
        name="staging",
        namespace="jx-staging",
        kind=EnvironmentKind.PERMANENT,
        source_url="https://github.com/myorg/environment-mycluster-staging.git",
        order=100,
    )


@pytest.fixture()
def production() -> Environment:
    return Environment(
        name="production",
        namespace="jx-production",
        kind=EnvironmentKind.PERMANENT,
        remote_cluster=True,
        source_url="https://github.com/myorg/environment-mycluster-production.git",
        order=200,
    )


@pytest.fixture()
def dev() -> Environment:
    return Environment(
        name="dev",
        namespace="jx",
        kind=EnvironmentKind.DEVELOPMENT,
        source_url="https://github.com/myorg/environment-mycluster-dev.git",
        order=0,
    )


@pytest.fixture()
def release_report(tmp_path: Path) -> Path:
    """A cloned environment repository with a ``docs/releases.yaml``."""
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "releases.yaml").write_text(
        textwrap.dedent("""\
        - namespace: jx-production
          releases:
            - name: myapp
              version: 1.2.3
              applicationURL: https://myapp.example.com
              repositoryURL: https://github.com/myorg/myapp
            - name: other
              version: "0.0.1"
            - version: 9.9.9
        - namespace: nginx
          releases:
            - name: ingress-nginx
              version: 3.3.0
        """)
    )
    return tmp_path
