"""CLI entry-point for k8s-apps."""

from __future__ import annotations

import logging
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from k8s_app_inventory import __version__
from k8s_app_inventory.aggregator import Aggregator
from k8s_app_inventory.config import Settings
from k8s_app_inventory.context import RunContext
from k8s_app_inventory.errors import AggregationError
from k8s_app_inventory.renderer import render_table, table_rows, to_json

console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    # Quieten noisy libraries
    logging.getLogger("git").setLevel(logging.WARNING)


class _AliasedGroup(click.Group):
    """Group that also resolves ``applications`` and ``apps`` to ``get``."""

    aliases = {"applications": "get", "apps": "get", "application": "get"}

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))


@click.group(cls=_AliasedGroup)
@click.version_option(version=__version__, prog_name="k8s-apps")
def main() -> None:
    """View deployed applications across environments."""


@main.command()
@click.option("--env", "-e", "env_filter", default="", help="Only show the given environment.")
@click.option(
    "--namespace", "-n", "namespace_filter", default="", help="Only show the given namespace."
)
@click.option("--url", "-u", "hide_url", is_flag=True, help="Hide the URLs.")
@click.option("--pod", "-p", "hide_pods", is_flag=True, help="Hide the pod counts.")
@click.option("--json", "as_json", is_flag=True, help="Print the applications as JSON.")
@click.option(
    "--catalog-namespace",
    default="",
    help="Namespace holding Environments and SourceRepositories (or set K8S_APPS_NAMESPACE).",
)
@click.option(
    "--kubeconfig", default="", help="Path to kubeconfig file (default: ~/.kube/config)."
)
@click.option("--context", "kube_context", default="", help="Kubernetes context to use.")
@click.option("--workers", default=4, type=int, help="Environments fetched concurrently.")
@click.option("--timeout", default=None, type=float, help="Deadline in seconds for the run.")
@click.option(
    "--kubectl-timeout",
    default=None,
    type=int,
    help="Seconds a single kubectl call may take (or set K8S_APPS_KUBECTL_TIMEOUT).",
)
@click.option(
    "--report-path",
    default=None,
    help="Release report path inside remote environment repositories (or set K8S_APPS_REPORT_PATH).",
)
@click.option(
    "--branch",
    "git_branch",
    default=None,
    help="Branch cloned for remote release reports (or set K8S_APPS_GIT_BRANCH).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def get(
    env_filter: str,
    namespace_filter: str,
    hide_url: bool,
    hide_pods: bool,
    as_json: bool,
    catalog_namespace: str,
    kubeconfig: str,
    kube_context: str,
    workers: int,
    timeout: float | None,
    kubectl_timeout: int | None,
    report_path: str | None,
    git_branch: str | None,
    verbose: bool,
) -> None:
    """Display applications and their versions in every environment.

    Examples:

      k8s-apps get

      k8s-apps get -e staging

      k8s-apps get -u -p
    """
    _configure_logging(verbose)

    # Unset flags fall back to the environment defaults of Settings.
    overrides = {
        "namespace": catalog_namespace or None,
        "kubectl_timeout": kubectl_timeout,
        "report_path": report_path,
        "git_branch": git_branch,
    }
    try:
        settings = Settings(
            kubeconfig=kubeconfig,
            kube_context=kube_context,
            max_workers=workers,
            timeout=timeout,
            verbose=verbose,
            **{k: v for k, v in overrides.items() if v is not None},
        )
    except ValidationError as exc:
        console.print(f"[red bold]Error:[/red bold] {escape(str(exc))}")
        sys.exit(1)

    aggregator = Aggregator.from_settings(settings)
    try:
        app_list = aggregator.get_applications(RunContext(timeout=settings.timeout))
    except AggregationError as exc:
        console.print(f"[red bold]Error:[/red bold] fetching applications: {escape(str(exc))}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled[/yellow]")
        sys.exit(130)

    if as_json:
        click.echo(to_json(app_list))
        return

    if not app_list.items:
        console.print("[yellow]No applications found[/yellow]")
        return

    rows = table_rows(
        app_list,
        hide_url=hide_url,
        hide_pods=hide_pods,
        env_filter=env_filter,
        namespace_filter=namespace_filter,
    )
    console.print(render_table(rows))


if __name__ == "__main__":
    main()
