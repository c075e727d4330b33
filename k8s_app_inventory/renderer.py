"""Render an application list as a table or JSON."""

from __future__ import annotations

from rich.table import Table

from k8s_app_inventory.models import ApplicationList, Environment
from k8s_app_inventory.naming import normalize, normalize_edit_name


def _title(env: Environment) -> str:
    return "EDIT" if env.is_edit else env.name.upper()


def environment_keys(
    app_list: ApplicationList, env_filter: str = "", namespace_filter: str = ""
) -> list[str]:
    """Environment names shown as columns, sorted by name in reverse."""
    keys = [
        name
        for name, env in app_list.environments().items()
        if (not env_filter or env_filter == name)
        and (not namespace_filter or namespace_filter == env.namespace)
    ]
    return sorted(keys, reverse=True)


def table_rows(
    app_list: ApplicationList,
    hide_url: bool = False,
    hide_pods: bool = False,
    env_filter: str = "",
    namespace_filter: str = "",
) -> list[list[str]]:
    """Build the header row followed by one row per deployed application."""
    envs = app_list.environments()
    keys = environment_keys(app_list, env_filter, namespace_filter)

    header = ["APPLICATION"]
    for key in keys:
        header.append(_title(envs[key]))
        if not hide_pods:
            header.append("PODS")
        if not hide_url:
            header.append("URL")
    rows = [header]

    for app in app_list.items:
        if not app.environments:
            continue
        name = app.name
        cells: list[str] = []
        for key in keys:
            env_deps = app.environments.get(key)
            if env_deps is None:
                cells.append("")
                if not hide_pods:
                    cells.append("")
                if not hide_url:
                    cells.append("")
                continue
            env = env_deps.environment
            for d in env_deps.deployments:
                name = normalize(d.name, key)
                if env.is_edit:
                    name = normalize_edit_name(name)
                elif env.is_preview:
                    name = env.pull_request_url
                cells.append("" if env.is_preview else d.version)
                if not hide_pods:
                    cells.append(d.pods)
                if not hide_url:
                    cells.append(d.url)
        rows.append([name, *cells])
    return rows


def render_table(rows: list[list[str]]) -> Table:
    """Wrap rows from :func:`table_rows` in a rich table."""
    table = Table(show_edge=False, box=None, pad_edge=False)
    for title in rows[0]:
        table.add_column(title, style="bold" if title == "APPLICATION" else None)
    for row in rows[1:]:
        table.add_row(*row)
    return table


def to_json(app_list: ApplicationList) -> str:
    return app_list.model_dump_json(indent=2)
