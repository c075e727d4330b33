"""Read the environment and source repository catalog.

Jenkins X keeps both catalogs as custom resources in the dev namespace:
``environments.jenkins.io`` and ``sourcerepositories.jenkins.io``.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from k8s_app_inventory.cluster import ClusterClient
from k8s_app_inventory.context import RunContext
from k8s_app_inventory.errors import CatalogReadError, ClusterQueryError
from k8s_app_inventory.models import Environment, SourceRepository

logger = logging.getLogger(__name__)

ENVIRONMENT_RESOURCE = "environments.jenkins.io"
SOURCE_REPOSITORY_RESOURCE = "sourcerepositories.jenkins.io"


class CatalogReader:
    """Lists environments and source repositories from the cluster."""

    def __init__(self, client: ClusterClient, namespace: str) -> None:
        self.client = client
        self.namespace = namespace

    def _items(self, kind: str, ctx: RunContext | None) -> list[dict]:
        try:
            return self.client.list_items(kind, self.namespace, ctx=ctx)
        except ClusterQueryError as exc:
            raise CatalogReadError(exc.message, namespace=self.namespace) from exc

    def list_source_repositories(self, ctx: RunContext | None = None) -> list[SourceRepository]:
        repos: list[SourceRepository] = []
        for raw in self._items(SOURCE_REPOSITORY_RESOURCE, ctx):
            try:
                repos.append(SourceRepository.from_resource(raw))
            except ValidationError as exc:
                name = (raw.get("metadata") or {}).get("name", "?")
                raise CatalogReadError(
                    f"malformed SourceRepository {name}: {exc}", namespace=self.namespace
                ) from exc
        logger.info("Found %d source repositories in %s", len(repos), self.namespace)
        return repos

    def list_environments(self, ctx: RunContext | None = None) -> dict[str, Environment]:
        """Return environments keyed by name, ordered by ``(order, name)``."""
        envs: list[Environment] = []
        for raw in self._items(ENVIRONMENT_RESOURCE, ctx):
            try:
                envs.append(Environment.from_resource(raw))
            except ValidationError as exc:
                name = (raw.get("metadata") or {}).get("name", "?")
                raise CatalogReadError(
                    f"malformed Environment {name}: {exc}", namespace=self.namespace
                ) from exc
        envs.sort(key=lambda e: (e.order, e.name))
        logger.info("Found %d environments in %s", len(envs), self.namespace)
        return {e.name: e for e in envs}


def permanent_environments(environments: dict[str, Environment]) -> dict[str, Environment]:
    """Keep only the permanent environments (Development included)."""
    return {name: env for name, env in environments.items() if env.kind.is_permanent()}


def _strip_git_url(url: str) -> str:
    url = url.strip().rstrip("/").lower()
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return url


def backs_environment(repo: SourceRepository, env: Environment) -> bool:
    """Return True if *repo* is the gitops repository of *env*."""
    if not env.source_url or not repo.repo:
        return False
    suffix = f"/{repo.org}/{repo.repo}" if repo.org else f"/{repo.repo}"
    return _strip_git_url(env.source_url).endswith(suffix.lower())


def candidate_repositories(
    repositories: list[SourceRepository], environments: dict[str, Environment]
) -> list[SourceRepository]:
    """Drop the repositories that back one of *environments*."""
    candidates: list[SourceRepository] = []
    for repo in repositories:
        if any(backs_environment(repo, env) for env in environments.values()):
            logger.debug("Skipping environment repository %s/%s", repo.org, repo.repo)
            continue
        candidates.append(repo)
    return candidates
