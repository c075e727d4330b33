"""Tests for k8s_app_inventory.naming."""

import pytest

from k8s_app_inventory.naming import normalize, normalize_edit_name, to_valid_name


class TestNormalize:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("tekton-tekton", "tekton"),
            ("foo-foo", "foo"),
            ("a-a", "a"),
            ("my-app-my-app", "my-app"),
        ],
    )
    def test_collapses_stutter(self, raw: str, expected: str) -> None:
        assert normalize(raw) == expected

    def test_strips_namespace_before_org_prefix(self) -> None:
        assert normalize("jx-staging-myapp", "jx-staging") == "myapp"

    def test_strips_org_prefix(self) -> None:
        assert normalize("jx-myapp") == "myapp"

    def test_org_prefix_stripped_before_stutter(self) -> None:
        assert normalize("jx-foo-foo") == "foo"

    def test_namespace_prefix_then_stutter(self) -> None:
        assert normalize("jx-staging-myapp-myapp", "jx-staging") == "myapp"

    def test_multiple_prefixes(self) -> None:
        assert normalize("prod-eu-myapp", "prod", "eu") == "myapp"

    def test_prefix_requires_dash(self) -> None:
        assert normalize("stagingapp", "staging") == "stagingapp"

    def test_no_match_unchanged(self) -> None:
        assert normalize("myapp") == "myapp"
        assert normalize("foo-bar") == "foo-bar"

    def test_near_stutter_unchanged(self) -> None:
        assert normalize("foo-fob") == "foo-fob"
        assert normalize("foofoo") == "foofoo"

    def test_empty(self) -> None:
        assert normalize("") == ""
        assert normalize("", "jx-staging") == ""

    def test_prefix_only_yields_empty(self) -> None:
        assert normalize("jx-") == ""
        assert normalize("jx-staging-", "jx-staging") == ""

    def test_single_character(self) -> None:
        assert normalize("a") == "a"

    def test_empty_prefix_ignored(self) -> None:
        assert normalize("-myapp", "") == "-myapp"


class TestNormalizeEditName:
    def test_collapses_stutter_only(self) -> None:
        assert normalize_edit_name("myapp-myapp") == "myapp"
        assert normalize_edit_name("jx-myapp") == "jx-myapp"

    def test_empty(self) -> None:
        assert normalize_edit_name("") == ""


class TestToValidName:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("my-repo-name", "my-repo-name"),
            ("MyRepo", "myrepo"),
            ("my_repo.name", "my-repo-name"),
            ("--weird__name--", "weird-name"),
            ("", ""),
        ],
    )
    def test_valid_names(self, raw: str, expected: str) -> None:
        assert to_valid_name(raw) == expected

    def test_truncates_to_63(self) -> None:
        name = to_valid_name("a" * 62 + "-bbb")
        assert len(name) <= 63
        assert not name.endswith("-")
