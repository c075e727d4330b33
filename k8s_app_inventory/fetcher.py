"""Fetch the deployments of one environment.

Environments in the current cluster are queried live through ``kubectl``;
environments in a remote cluster are read from the release report committed
to their gitops repository.
"""

from __future__ import annotations

import logging
from typing import Any

from git import GitCommandError

from k8s_app_inventory.classifier import is_canary_auxiliary
from k8s_app_inventory.cluster import ClusterClient
from k8s_app_inventory.config import DEFAULT_REPORT_PATH
from k8s_app_inventory.context import RunContext
from k8s_app_inventory.errors import (
    AggregationError,
    MissingGitURLError,
    RemoteFetchError,
    SelectorResolutionError,
)
from k8s_app_inventory.models import Deployment, Environment
from k8s_app_inventory.naming import normalize
from k8s_app_inventory.remote import clone_repo, load_release_report, releases_to_deployments
from k8s_app_inventory.versions import extract_version

logger = logging.getLogger(__name__)

APP_LABEL = "app"


def pods_ratio(raw: dict[str, Any]) -> str:
    """Return ``ready/desired`` for a deployment, or ``""`` if nothing is ready."""
    ready = (raw.get("status") or {}).get("readyReplicas") or 0
    replicas = (raw.get("spec") or {}).get("replicas")
    if replicas is None or ready <= 0:
        return ""
    return f"{ready}/{replicas}"


def selector_as_map(selector: dict[str, Any] | None) -> dict[str, str]:
    """Flatten a label selector into a plain label map.

    Only equality-style expressions can be represented: ``In`` with a single
    value, and ``Exists``, which maps to an empty value.  Kubernetes'
    ``LabelSelectorAsMap`` rejects ``Exists``; it is accepted here on purpose
    so a selector that only requires an ``app`` key still resolves, falling
    back to the deployment name.  Anything else raises :class:`ValueError`.
    """
    if not selector:
        return {}
    labels = dict(selector.get("matchLabels") or {})
    for expr in selector.get("matchExpressions") or []:
        key = expr.get("key", "")
        operator = expr.get("operator", "")
        values = expr.get("values") or []
        if operator == "In" and len(values) == 1:
            labels[key] = values[0]
        elif operator == "Exists" and not values:
            labels[key] = ""
        else:
            raise ValueError(
                f"operator {operator!r} without a single value cannot be converted "
                "into a label map"
            )
    return labels


def create_deployment(raw: dict[str, Any], environment: Environment) -> Deployment:
    """Build a :class:`Deployment` from a raw ``apps/v1`` Deployment object.

    The application name comes from the ``app`` selector label when present,
    otherwise from the deployment name.  The URL is left empty.
    """
    metadata = raw.get("metadata") or {}
    raw_name = metadata.get("name", "")
    name = normalize(raw_name, metadata.get("namespace", ""))

    try:
        labels = selector_as_map((raw.get("spec") or {}).get("selector"))
    except ValueError as exc:
        raise SelectorResolutionError(
            f"deployment {raw_name}: {exc}", namespace=environment.namespace
        ) from exc
    app_name = normalize(labels.get(APP_LABEL, ""), environment.namespace)

    return Deployment(
        name=app_name or name,
        pods=pods_ratio(raw),
        version=extract_version(metadata.get("labels")),
        canary=is_canary_auxiliary(metadata.get("ownerReferences")),
    )


class DeploymentFetcher:
    """Fetches deployments per environment using the live or remote strategy."""

    def __init__(
        self,
        client: ClusterClient,
        report_path: str = DEFAULT_REPORT_PATH,
        git_branch: str = "",
    ) -> None:
        self.client = client
        self.report_path = report_path
        self.git_branch = git_branch

    def fetch(self, environment: Environment, ctx: RunContext | None = None) -> list[Deployment]:
        ctx = ctx or RunContext()
        try:
            if environment.remote_cluster:
                deployments = self.fetch_remote(environment, ctx)
            else:
                deployments = self.fetch_live(environment, ctx)
        except AggregationError as exc:
            if exc.namespace:
                raise
            raise type(exc)(exc.message, namespace=environment.namespace) from exc
        logger.info(
            "Environment %s (%s): %d deployments",
            environment.name,
            environment.namespace,
            len(deployments),
        )
        return deployments

    def fetch_live(self, environment: Environment, ctx: RunContext) -> list[Deployment]:
        ns = environment.namespace
        deployments: list[Deployment] = []
        for raw in self.client.list_deployments(ns, ctx=ctx):
            deployment = create_deployment(raw, environment)
            url = self.client.find_service_url(ns, deployment.name, ctx=ctx)
            deployments.append(deployment.model_copy(update={"url": url}))
        return deployments

    def fetch_remote(self, environment: Environment, ctx: RunContext) -> list[Deployment]:
        ns = environment.namespace
        git_url = environment.source_url
        if not git_url:
            raise MissingGitURLError(f"no git URL on environment {environment.name}", namespace=ns)

        try:
            with clone_repo(git_url, self.git_branch, ctx=ctx) as repo_root:
                path = repo_root / self.report_path
                if not path.is_file():
                    logger.info("No release report %s in %s", self.report_path, git_url)
                    return []
                reports = load_release_report(path, namespace=ns)
        except AggregationError:
            raise
        except (GitCommandError, OSError) as exc:
            raise RemoteFetchError(
                f"failed to fetch release report from {git_url} for environment "
                f"{environment.name}: {exc}",
                namespace=ns,
            ) from exc

        for report in reports:
            if report.namespace == ns:
                return releases_to_deployments(report.releases)
        return []
