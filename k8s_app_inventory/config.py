"""Application configuration and settings."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field


DEFAULT_NAMESPACE = "jx"
DEFAULT_MAX_WORKERS = 4
DEFAULT_KUBECTL_TIMEOUT = 30
DEFAULT_REPORT_PATH = "docs/releases.yaml"


class Settings(BaseModel):
    """Runtime settings resolved from env vars and CLI flags."""

    # Catalog
    namespace: str = Field(
        default_factory=lambda: os.environ.get("K8S_APPS_NAMESPACE", DEFAULT_NAMESPACE),
        description="Namespace holding the Environment and SourceRepository resources.",
    )

    # ── Cluster settings ─────────────────────────────────────────────
    kubeconfig: str = Field(
        default="",
        description="Path to kubeconfig file. Empty = use default (~/.kube/config).",
    )
    kube_context: str = Field(
        default="",
        description="Kubernetes context to use. Empty = current context.",
    )
    kubectl_timeout: int = Field(
        default_factory=lambda: os.environ.get("K8S_APPS_KUBECTL_TIMEOUT", DEFAULT_KUBECTL_TIMEOUT),
        validate_default=True,
        ge=1,
        description="Timeout in seconds for a single kubectl call.",
    )

    # ── Fetching ─────────────────────────────────────────────────────
    max_workers: int = Field(
        default=DEFAULT_MAX_WORKERS,
        ge=1,
        description="Maximum number of environments fetched concurrently.",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Deadline in seconds for the whole run. None = no deadline.",
    )
    report_path: str = Field(
        default_factory=lambda: os.environ.get("K8S_APPS_REPORT_PATH", DEFAULT_REPORT_PATH),
        description="Release report location inside a remote environment repository.",
    )
    git_branch: str = Field(
        default_factory=lambda: os.environ.get("K8S_APPS_GIT_BRANCH", ""),
        description="Branch cloned for remote reports. Empty = the remote's default.",
    )

    # Behaviour
    verbose: bool = False
