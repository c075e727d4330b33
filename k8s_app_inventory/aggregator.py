"""Combine the catalog and per-environment deployments into applications.

A run has two phases.  First every fetchable environment is fetched, possibly
concurrently; then, once all fetches have completed, :func:`aggregate` matches
deployments to applications.  Any fetch error aborts the run: there is no
partial result.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from k8s_app_inventory.catalog import CatalogReader, candidate_repositories, permanent_environments
from k8s_app_inventory.cluster import ClusterClient
from k8s_app_inventory.config import Settings
from k8s_app_inventory.context import RunContext
from k8s_app_inventory.errors import Cancelled
from k8s_app_inventory.fetcher import DeploymentFetcher
from k8s_app_inventory.models import (
    Application,
    ApplicationList,
    Deployment,
    Environment,
    EnvironmentDeployments,
    EnvironmentKind,
    SourceRepository,
)

logger = logging.getLogger(__name__)


def fetchable_environments(environments: dict[str, Environment]) -> dict[str, Environment]:
    """Permanent environments whose deployments are fetched (everything but dev)."""
    return {
        name: env
        for name, env in permanent_environments(environments).items()
        if env.kind != EnvironmentKind.DEVELOPMENT
    }


def aggregate(
    repositories: list[SourceRepository],
    environments: dict[str, Environment],
    deployments_by_environment: dict[str, list[Deployment]],
) -> ApplicationList:
    """Match fetched deployments to the applications of the catalog.

    *deployments_by_environment* is keyed by environment name.  A deployment
    matches an application when its resolved name equals the application name
    and it is not a canary auxiliary deployment.  Every match is kept, so two
    deployments resolving to the same application both show up.  The inputs
    are not modified.
    """
    permanent = permanent_environments(environments)
    candidates = fetchable_environments(environments)

    items: list[Application] = []
    for repo in candidate_repositories(repositories, permanent):
        app = Application(source_repository=repo)
        for env_name, env in candidates.items():
            matched = [
                d
                for d in deployments_by_environment.get(env_name, [])
                if d.name == app.name and not d.canary
            ]
            if matched:
                app.environments[env_name] = EnvironmentDeployments(
                    environment=env, deployments=matched
                )
        items.append(app)
    return ApplicationList(items=items)


class Aggregator:
    """Runs a complete aggregation: catalog read, fetches, reconciliation."""

    def __init__(
        self,
        catalog: CatalogReader,
        fetcher: DeploymentFetcher,
        max_workers: int = 4,
    ) -> None:
        self.catalog = catalog
        self.fetcher = fetcher
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls, settings: Settings) -> Aggregator:
        client = ClusterClient(
            kubeconfig=settings.kubeconfig,
            context=settings.kube_context,
            timeout=settings.kubectl_timeout,
        )
        return cls(
            catalog=CatalogReader(client, settings.namespace),
            fetcher=DeploymentFetcher(
                client, report_path=settings.report_path, git_branch=settings.git_branch
            ),
            max_workers=settings.max_workers,
        )

    def get_applications(self, ctx: RunContext | None = None) -> ApplicationList:
        ctx = ctx or RunContext()
        repositories = self.catalog.list_source_repositories(ctx)
        environments = self.catalog.list_environments(ctx)
        deployments = self.fetch_all(fetchable_environments(environments), ctx)
        ctx.check("aggregation")
        result = aggregate(repositories, environments, deployments)
        logger.info(
            "Aggregated %d applications across %d environments",
            len(result.items),
            len(deployments),
        )
        return result

    def fetch_all(
        self, environments: dict[str, Environment], ctx: RunContext
    ) -> dict[str, list[Deployment]]:
        """Fetch every environment with a bounded pool and wait for all of them.

        The first failure cancels the remaining fetches and is re-raised once
        the pool has drained.
        """
        if not environments:
            return {}
        ctx.check("fetch")
        fetch_ctx = ctx.child()
        workers = min(self.max_workers, len(environments))

        results: dict[str, list[Deployment]] = {}
        errors: list[Exception] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch") as pool:
            futures: dict[Future[list[Deployment]], str] = {
                pool.submit(self.fetcher.fetch, env, fetch_ctx): name
                for name, env in environments.items()
            }
            try:
                for future in as_completed(futures):
                    try:
                        results[futures[future]] = future.result()
                    except Exception as exc:
                        errors.append(exc)
                        fetch_ctx.cancel()
            except KeyboardInterrupt:
                fetch_ctx.cancel()
                raise

        if ctx.cancelled:
            raise Cancelled("aggregation cancelled")
        # Siblings of a failed fetch raise Cancelled; report the original failure.
        for exc in errors:
            if not isinstance(exc, Cancelled):
                raise exc
        if errors:
            raise errors[0]
        return results
