"""Pydantic models for environments, applications and their deployments."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from k8s_app_inventory.naming import to_valid_name


# ──────────────────────────── Catalog ─────────────────────────────────────────


class EnvironmentKind(str, Enum):
    """Kinds of Jenkins X ``Environment`` resources."""

    DEVELOPMENT = "Development"
    PERMANENT = "Permanent"
    PREVIEW = "Preview"
    EDIT = "Edit"
    TEST = "Test"

    def is_permanent(self) -> bool:
        return self not in (EnvironmentKind.PREVIEW, EnvironmentKind.EDIT, EnvironmentKind.TEST)


class Environment(BaseModel):
    """A deployment target backed by a namespace, possibly in a remote cluster."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str = ""
    kind: EnvironmentKind = EnvironmentKind.PERMANENT
    remote_cluster: bool = False
    source_url: str = ""
    order: int = 0
    pull_request_url: str = ""
    label: str = ""

    @property
    def is_preview(self) -> bool:
        return self.kind == EnvironmentKind.PREVIEW

    @property
    def is_edit(self) -> bool:
        return self.kind == EnvironmentKind.EDIT

    @classmethod
    def from_resource(cls, raw: dict[str, Any]) -> Environment:
        """Build an Environment from a ``jenkins.io/v1`` Environment object."""
        metadata = raw.get("metadata") or {}
        spec = raw.get("spec") or {}
        source = spec.get("source") or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=spec.get("namespace", ""),
            kind=spec.get("kind") or EnvironmentKind.PERMANENT,
            remote_cluster=bool(spec.get("remoteCluster", False)),
            source_url=source.get("url", ""),
            order=spec.get("order") or 0,
            pull_request_url=spec.get("pullRequestURL", ""),
            label=spec.get("label", ""),
        )


class SourceRepository(BaseModel):
    """A git repository registered in the catalog."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    org: str = ""
    repo: str
    url: str = ""

    @classmethod
    def from_resource(cls, raw: dict[str, Any]) -> SourceRepository:
        """Build a SourceRepository from a ``jenkins.io/v1`` SourceRepository object."""
        metadata = raw.get("metadata") or {}
        spec = raw.get("spec") or {}
        return cls(
            name=metadata.get("name", ""),
            org=spec.get("org", ""),
            repo=spec.get("repo", ""),
            url=spec.get("url", "") or spec.get("httpCloneURL", ""),
        )


# ──────────────────────────── Deployments ─────────────────────────────────────


class Deployment(BaseModel):
    """An application deployment in a single environment."""

    model_config = ConfigDict(frozen=True)

    name: str
    pods: str = ""
    version: str = ""
    url: str = ""
    canary: bool = False


class EnvironmentDeployments(BaseModel):
    """The deployments of one application in one environment."""

    environment: Environment
    deployments: list[Deployment] = Field(default_factory=list)


class Application(BaseModel):
    """An application registered in the catalog and where it is deployed."""

    source_repository: SourceRepository
    environments: dict[str, EnvironmentDeployments] = Field(default_factory=dict)

    @computed_field
    @property
    def name(self) -> str:
        return to_valid_name(self.source_repository.repo)


class ApplicationList(BaseModel):
    """The result of one aggregation run."""

    items: list[Application] = Field(default_factory=list)

    def environments(self) -> dict[str, Environment]:
        """Every environment any application is deployed to, keyed by name."""
        envs: dict[str, Environment] = {}
        for app in self.items:
            for name, env_deps in app.environments.items():
                envs.setdefault(name, env_deps.environment)
        return envs


# ──────────────────────────── Release report ──────────────────────────────────


class ReleaseInfo(BaseModel):
    """A release record from a remote cluster's ``docs/releases.yaml``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    application_url: str = Field(default="", alias="applicationURL")
    version: str = ""

    @field_validator("name", "application_url", "version", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        # YAML turns unquoted versions such as 1.10 into floats.
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class NamespaceReleases(BaseModel):
    """The releases deployed to one namespace of a remote cluster."""

    model_config = ConfigDict(extra="ignore")

    namespace: str = ""
    releases: list[ReleaseInfo] = Field(default_factory=list)

    @field_validator("releases", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value
