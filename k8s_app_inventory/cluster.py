"""Kubernetes cluster interaction via kubectl subprocess calls.

All calls go through ``kubectl`` so the tool uses whatever kubeconfig /
context the operator has active, with no in-process K8s client library.

Only read operations are exposed.  Every command is logged for auditability
and can be interrupted through a :class:`~k8s_app_inventory.context.RunContext`.
"""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
import time
from dataclasses import dataclass, field
from typing import Any

from k8s_app_inventory.context import RunContext
from k8s_app_inventory.errors import Cancelled, ClusterQueryError

logger = logging.getLogger(__name__)

# Maximum output we'll capture from kubectl to avoid memory blowup.
_MAX_OUTPUT_BYTES = 4 * 1024 * 1024  # 4 MB

# How often a running command checks for cancellation.
_POLL_INTERVAL = 0.2

# Annotation exposecontroller writes on services with their external URL.
EXPOSE_URL_ANNOTATION = "fabric8.io/exposeUrl"


@dataclass
class CommandResult:
    """Result of a kubectl command execution."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class ClusterClient:
    """Read-only interface to a Kubernetes cluster via kubectl.

    Parameters
    ----------
    kubeconfig : str
        Path to kubeconfig file.  Empty string means use the default.
    context : str
        Kubernetes context to use.  Empty string means use the current context.
    timeout : int
        Seconds a single kubectl call may take.
    """

    kubeconfig: str = ""
    context: str = ""
    timeout: int = 30
    _base_cmd: list[str] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        self._base_cmd = ["kubectl"]
        if self.kubeconfig:
            self._base_cmd += ["--kubeconfig", self.kubeconfig]
        if self.context:
            self._base_cmd += ["--context", self.context]

    # ── Low-level executor ────────────────────────────────────────────────

    def _run(
        self,
        args: list[str],
        timeout: int | None = None,
        ctx: RunContext | None = None,
    ) -> CommandResult:
        """Run a kubectl command and return the result.

        Raises :class:`Cancelled` if *ctx* is cancelled while the command runs;
        every other failure is reported through the returned result.
        """
        timeout = timeout or self.timeout
        cmd = self._base_cmd + args
        cmd_str = shlex.join(cmd)
        if ctx is not None:
            ctx.check("kubectl")
        logger.info("kubectl: %s", cmd_str)

        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError:
            return CommandResult(
                command=cmd_str,
                returncode=-1,
                stdout="",
                stderr="kubectl not found. Is it installed and on the PATH?",
            )

        deadline = time.monotonic() + timeout
        while True:
            try:
                stdout, stderr = proc.communicate(timeout=_POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if ctx is not None and ctx.cancelled:
                    proc.kill()
                    proc.communicate()
                    raise Cancelled(f"kubectl cancelled: {cmd_str}")
                if time.monotonic() >= deadline:
                    proc.kill()
                    proc.communicate()
                    return CommandResult(
                        command=cmd_str,
                        returncode=-1,
                        stdout="",
                        stderr=f"Command timed out after {timeout}s",
                    )

        return CommandResult(
            command=cmd_str,
            returncode=proc.returncode,
            stdout=(stdout or "")[:_MAX_OUTPUT_BYTES],
            stderr=(stderr or "")[:_MAX_OUTPUT_BYTES],
        )

    # ── Read operations ───────────────────────────────────────────────────

    def get_resources(
        self,
        kind: str,
        namespace: str = "",
        label_selector: str = "",
        ctx: RunContext | None = None,
    ) -> CommandResult:
        """Get resources of a given kind."""
        args = ["get", kind, "-o", "json"]
        if namespace:
            args += ["-n", namespace]
        else:
            args += ["--all-namespaces"]
        if label_selector:
            args += ["-l", label_selector]
        return self._run(args, ctx=ctx)

    def get_resource(
        self, kind: str, name: str, namespace: str, ctx: RunContext | None = None
    ) -> CommandResult:
        """Get a single named resource."""
        return self._run(["get", kind, name, "-n", namespace, "-o", "json"], ctx=ctx)

    def list_items(
        self, kind: str, namespace: str, ctx: RunContext | None = None
    ) -> list[dict[str, Any]]:
        """Return the ``items`` of a namespaced list, raising on any failure."""
        result = self.get_resources(kind, namespace=namespace, ctx=ctx)
        if not result.ok:
            raise ClusterQueryError(
                f"failed to list {kind}: {result.stderr.strip()}", namespace=namespace
            )
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise ClusterQueryError(
                f"malformed JSON listing {kind}: {exc}", namespace=namespace
            ) from exc
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ClusterQueryError(f"no items in {kind} list", namespace=namespace)
        return items

    def list_deployments(
        self, namespace: str, ctx: RunContext | None = None
    ) -> list[dict[str, Any]]:
        """List every Deployment in *namespace*."""
        return self.list_items("deployments", namespace, ctx=ctx)

    # ── Service URL discovery ─────────────────────────────────────────────

    def find_service_url(
        self, namespace: str, app_name: str, ctx: RunContext | None = None
    ) -> str:
        """Find the external URL of the service for *app_name*.

        Looks at the service's expose annotation, then at ingresses routing to
        it, then at a load balancer address.  Returns ``""`` if nothing is
        found; lookup failures are logged, never raised.
        """
        service: dict[str, Any] = {}
        result = self.get_resource("service", app_name, namespace, ctx=ctx)
        if result.ok:
            try:
                service = json.loads(result.stdout)
            except json.JSONDecodeError:
                logger.debug("Malformed service JSON for %s/%s", namespace, app_name)
        else:
            logger.debug("No service %s in %s: %s", app_name, namespace, result.stderr.strip())

        annotations = (service.get("metadata") or {}).get("annotations") or {}
        url = annotations.get(EXPOSE_URL_ANNOTATION, "")
        if url:
            return url

        result = self.get_resources("ingresses", namespace=namespace, ctx=ctx)
        if result.ok:
            try:
                ingresses = json.loads(result.stdout).get("items", [])
            except (json.JSONDecodeError, AttributeError):
                ingresses = []
            for ing in ingresses:
                url = ingress_url(ing or {}, app_name)
                if url:
                    return url
        else:
            logger.debug("Could not list ingresses in %s: %s", namespace, result.stderr.strip())

        return load_balancer_url(service)


def ingress_url(ingress: dict[str, Any], service_name: str) -> str:
    """Return the URL of the first rule in *ingress* routing to *service_name*."""
    spec = ingress.get("spec") or {}
    tls_hosts = {h for t in spec.get("tls") or [] for h in (t or {}).get("hosts") or []}
    for rule in spec.get("rules") or []:
        rule = rule or {}
        host = rule.get("host", "")
        if not host:
            continue
        for path_entry in (rule.get("http") or {}).get("paths") or []:
            path_entry = path_entry or {}
            backend = path_entry.get("backend") or {}
            name = (backend.get("service") or {}).get("name") or backend.get("serviceName")
            if name != service_name:
                continue
            scheme = "https" if host in tls_hosts else "http"
            path = path_entry.get("path") or ""
            if path in ("", "/"):
                path = ""
            return f"{scheme}://{host}{path}"
    return ""


def load_balancer_url(service: dict[str, Any]) -> str:
    """Return ``http://addr[:port]`` for a LoadBalancer service that has an address."""
    spec = service.get("spec") or {}
    if spec.get("type") != "LoadBalancer":
        return ""
    ingress = ((service.get("status") or {}).get("loadBalancer") or {}).get("ingress") or []
    for entry in ingress:
        entry = entry or {}
        addr = entry.get("hostname") or entry.get("ip")
        if not addr:
            continue
        ports = spec.get("ports") or []
        port = (ports[0] or {}).get("port") if ports else None
        if port and port != 80:
            return f"http://{addr}:{port}"
        return f"http://{addr}"
    return ""
