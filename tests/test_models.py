"""Tests for k8s_app_inventory.models."""

import pytest
from pydantic import ValidationError

from k8s_app_inventory.models import (
    Application,
    ApplicationList,
    Deployment,
    Environment,
    EnvironmentDeployments,
    EnvironmentKind,
    NamespaceReleases,
    ReleaseInfo,
    SourceRepository,
)


class TestEnvironmentKind:
    @pytest.mark.parametrize(
        "kind, permanent",
        [
            (EnvironmentKind.PERMANENT, True),
            (EnvironmentKind.DEVELOPMENT, True),
            (EnvironmentKind.PREVIEW, False),
            (EnvironmentKind.EDIT, False),
            (EnvironmentKind.TEST, False),
        ],
    )
    def test_is_permanent(self, kind: EnvironmentKind, permanent: bool) -> None:
        assert kind.is_permanent() is permanent


class TestEnvironment:
    def test_from_resource(self) -> None:
        env = Environment.from_resource(
            {
                "apiVersion": "jenkins.io/v1",
                "kind": "Environment",
                "metadata": {"name": "production", "namespace": "jx"},
                "spec": {
                    "namespace": "jx-production",
                    "kind": "Permanent",
                    "order": 200,
                    "remoteCluster": True,
                    "source": {"url": "https://github.com/myorg/env-prod.git", "ref": "main"},
                },
            }
        )
        assert env.name == "production"
        assert env.namespace == "jx-production"
        assert env.kind == EnvironmentKind.PERMANENT
        assert env.remote_cluster is True
        assert env.source_url == "https://github.com/myorg/env-prod.git"
        assert env.order == 200

    def test_missing_kind_defaults_to_permanent(self) -> None:
        env = Environment.from_resource({"metadata": {"name": "x"}, "spec": {"namespace": "x"}})
        assert env.kind == EnvironmentKind.PERMANENT
        assert env.remote_cluster is False

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Environment.from_resource({"metadata": {"name": "x"}, "spec": {"kind": "Bogus"}})

    def test_preview_and_edit(self) -> None:
        assert Environment(name="pr-1", kind=EnvironmentKind.PREVIEW).is_preview
        assert Environment(name="edit", kind=EnvironmentKind.EDIT).is_edit


class TestSourceRepository:
    def test_from_resource(self) -> None:
        repo = SourceRepository.from_resource(
            {
                "metadata": {"name": "myorg-myapp"},
                "spec": {"org": "myorg", "repo": "myapp", "httpCloneURL": "https://x/myorg/myapp.git"},
            }
        )
        assert repo.name == "myorg-myapp"
        assert repo.org == "myorg"
        assert repo.repo == "myapp"
        assert repo.url == "https://x/myorg/myapp.git"


class TestApplication:
    def test_name_is_valid_repo_name(self) -> None:
        app = Application(source_repository=SourceRepository(repo="My_Repo"))
        assert app.name == "my-repo"

    def test_name_is_serialized(self) -> None:
        app = Application(source_repository=SourceRepository(repo="My_Repo"))
        assert app.model_dump()["name"] == "my-repo"
        assert '"name":"my-repo"' in app.model_dump_json()

    def test_environments_default_empty(self) -> None:
        app = Application(source_repository=SourceRepository(repo="myapp"))
        assert app.environments == {}


class TestDeployment:
    def test_immutable(self) -> None:
        d = Deployment(name="myapp")
        with pytest.raises(ValidationError):
            d.name = "other"

    def test_defaults(self) -> None:
        d = Deployment(name="myapp")
        assert (d.pods, d.version, d.url, d.canary) == ("", "", "", False)


class TestApplicationList:
    def test_environments_union(self) -> None:
        staging = Environment(name="staging", namespace="jx-staging")
        prod = Environment(name="production", namespace="jx-production")
        apps = ApplicationList(
            items=[
                Application(
                    source_repository=SourceRepository(repo="a"),
                    environments={
                        "staging": EnvironmentDeployments(
                            environment=staging, deployments=[Deployment(name="a")]
                        )
                    },
                ),
                Application(
                    source_repository=SourceRepository(repo="b"),
                    environments={
                        "staging": EnvironmentDeployments(environment=staging),
                        "production": EnvironmentDeployments(environment=prod),
                    },
                ),
            ]
        )
        envs = apps.environments()
        assert set(envs) == {"staging", "production"}
        assert envs["production"].namespace == "jx-production"

    def test_empty(self) -> None:
        assert ApplicationList().environments() == {}


class TestReleaseInfo:
    def test_alias(self) -> None:
        r = ReleaseInfo.model_validate({"name": "a", "applicationURL": "http://a", "version": "1"})
        assert r.application_url == "http://a"

    def test_numeric_version_coerced(self) -> None:
        r = ReleaseInfo.model_validate({"name": "a", "version": 1.1})
        assert r.version == "1.1"

    def test_null_fields(self) -> None:
        r = ReleaseInfo.model_validate({"name": None, "version": None})
        assert r.name == ""
        assert r.version == ""

    def test_null_releases(self) -> None:
        group = NamespaceReleases.model_validate({"namespace": "x", "releases": None})
        assert group.releases == []
