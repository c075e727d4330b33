"""Release reports committed to the gitops repository of a remote cluster.

When an environment lives in another cluster there is no API access to its
deployments.  Instead its boot job commits ``docs/releases.yaml``, a list of
namespaces each with the releases deployed to it::

    - namespace: jx-production
      releases:
        - name: myapp
          version: 1.2.3
          applicationURL: https://myapp.example.com
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import yaml
from git import Git, GitCommandError
from pydantic import ValidationError

from k8s_app_inventory.context import RunContext
from k8s_app_inventory.errors import Cancelled, ReportParseError
from k8s_app_inventory.models import Deployment, NamespaceReleases, ReleaseInfo

logger = logging.getLogger(__name__)

# How often a running clone checks for cancellation.
_POLL_INTERVAL = 0.2


@contextmanager
def clone_repo(
    url: str, branch: str = "", ctx: RunContext | None = None
) -> Generator[Path, None, None]:
    """Clone a remote Git repository into a temporary directory.

    Yields the clone path, then cleans up the temp directory on exit, also
    when the clone fails or is cancelled.  Uses ``--depth=1 --single-branch``
    for speed and disk safety.  Raises :class:`GitCommandError` if git fails.
    """
    ctx = ctx or RunContext()
    with tempfile.TemporaryDirectory(prefix="k8s-apps-") as tmp:
        tmp_path = Path(tmp)
        ctx.check("git clone")
        logger.info("Cloning %s (branch=%s) → %s", url, branch or "default", tmp_path)

        args = ["--depth=1", "--single-branch"]
        if branch:
            args += ["--branch", branch]
        proc = Git(tmp).clone(*args, "--", url, str(tmp_path), as_process=True)
        popen = proc.proc
        try:
            while popen.poll() is None:
                if ctx.wait(_POLL_INTERVAL):
                    raise Cancelled(f"git clone of {url} cancelled")
            stderr = popen.stderr.read() if popen.stderr else b""
            if popen.returncode != 0:
                raise GitCommandError(["git", "clone", url], popen.returncode, stderr)
        finally:
            if popen.poll() is None:
                popen.kill()
                popen.wait()
        yield tmp_path


def load_release_report(path: Path, namespace: str = "") -> list[NamespaceReleases]:
    """Parse a release report file.

    Raises :class:`ReportParseError` if the document is not a list of
    namespace release groups.  An empty document yields an empty list.
    """
    try:
        doc = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ReportParseError(f"invalid YAML in {path.name}: {exc}", namespace=namespace) from exc

    if doc is None:
        return []
    if not isinstance(doc, list):
        raise ReportParseError(
            f"{path.name} should be a list of namespaces, got {type(doc).__name__}",
            namespace=namespace,
        )
    try:
        return [NamespaceReleases.model_validate(entry) for entry in doc]
    except ValidationError as exc:
        raise ReportParseError(f"malformed release in {path.name}: {exc}", namespace=namespace) from exc


def releases_to_deployments(releases: list[ReleaseInfo]) -> list[Deployment]:
    """Convert release records to deployments, skipping records with no name."""
    deployments: list[Deployment] = []
    for r in releases:
        if not r.name:
            logger.debug("Skipping release without a name: %s", r)
            continue
        deployments.append(Deployment(name=r.name, url=r.application_url, version=r.version))
    return deployments
