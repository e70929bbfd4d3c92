from __future__ import annotations

from pathlib import Path

import pytest

from ghops.commands import CommandSpec, Operation, Tool, build_command, supported_operations
from ghops.errors import ConfigurationError


def test_every_operation_has_a_template() -> None:
    assert set(supported_operations()) == set(Operation)


def test_release_create_builds_documented_flags() -> None:
    spec = build_command(
        Operation.GH_RELEASE_CREATE,
        cwd="/tmp/repo",
        tag="jep_38_4_2",
        files=["jep_38_4_2.mp3"],
        title="The Political Economy",
        notes="Show notes",
        prerelease=True,
    )

    assert spec.tool is Tool.GH
    assert spec.tokens == (
        "gh",
        "release",
        "create",
        "jep_38_4_2",
        "jep_38_4_2.mp3",
        "--title",
        "The Political Economy",
        "--notes",
        "Show notes",
        "--prerelease",
    )
    assert spec.cwd == Path("/tmp/repo")
    assert spec.requires_repository


def test_release_create_adds_target_only_when_not_main() -> None:
    default = build_command(Operation.GH_RELEASE_CREATE, tag="v1", files=["a.bin"])
    custom = build_command(Operation.GH_RELEASE_CREATE, tag="v1", files=["a.bin"], target="dev", draft=True)

    assert "--target" not in default.args
    assert default.args[-2:] == ("--notes", "")
    assert custom.args[-3:] == ("--target", "dev", "--draft")


@pytest.mark.parametrize("tag", ["", "   ", "--repo=evil/repo", "-h"])
def test_tag_values_cannot_be_empty_or_flags(tag: str) -> None:
    with pytest.raises(ConfigurationError):
        build_command(Operation.GH_RELEASE_DELETE, tag=tag)


def test_dash_prefixed_paths_are_made_relative() -> None:
    spec = build_command(Operation.GIT_CHECKOUT_PATHS, commit="abc123", paths=["-rf", "docs/a.txt"])

    assert spec.args == ("checkout", "abc123", "--", "./-rf", "docs/a.txt")


def test_commit_message_may_start_with_dash() -> None:
    spec = build_command(Operation.GIT_COMMIT, message="- bullet", allow_empty=True)

    assert spec.args == ("commit", "-m", "- bullet", "--allow-empty")


def test_commit_message_must_not_be_blank() -> None:
    with pytest.raises(ConfigurationError):
        build_command(Operation.GIT_COMMIT, message="  ")


def test_secret_set_keeps_value_out_of_argv() -> None:
    spec = build_command(Operation.GH_SECRET_SET, name="API_KEY", input_text="s3cr3t-value")

    assert spec.args == ("secret", "set", "API_KEY")
    assert "s3cr3t-value" not in spec.display
    assert "s3cr3t-value" not in repr(spec)


@pytest.mark.parametrize("name", ["1ABC", "API-KEY", "", "A B"])
def test_secret_names_are_validated(name: str) -> None:
    with pytest.raises(ConfigurationError):
        build_command(Operation.GH_SECRET_DELETE, name=name)


def test_run_ids_must_be_numeric() -> None:
    assert build_command(Operation.GH_RUN_DELETE, run_id=123).args == ("run", "delete", "123")
    with pytest.raises(ConfigurationError):
        build_command(Operation.GH_RUN_VIEW_LOG, run_id="123; rm -rf /")


def test_release_list_targets_remote_repo() -> None:
    spec = build_command(Operation.GH_RELEASE_LIST, limit=5, owner_repo="skranz/jep_podcast", requires_repository=False)

    assert spec.args == (
        "release",
        "list",
        "--limit",
        "5",
        "--json",
        "tagName",
        "--jq",
        ".[].tagName",
        "-R",
        "skranz/jep_podcast",
    )
    assert not spec.requires_repository


def test_limits_must_be_positive() -> None:
    with pytest.raises(ConfigurationError):
        build_command(Operation.GH_RUN_LIST, limit=0)


def test_repo_create_validates_access() -> None:
    spec = build_command(Operation.GH_REPO_CREATE, name="notes", access="public")

    assert spec.args == ("repo", "create", "notes", "--public", "--clone")
    assert not spec.requires_repository
    with pytest.raises(ConfigurationError):
        build_command(Operation.GH_REPO_CREATE, name="notes", access="secret")


def test_unknown_parameters_are_configuration_errors() -> None:
    with pytest.raises(ConfigurationError):
        build_command(Operation.GIT_STATUS, verbose=True)


def test_display_quotes_tokens() -> None:
    spec = CommandSpec(tool=Tool.GIT, args=("commit", "-m", "two words"))

    assert spec.display == "git commit -m 'two words'"


def test_delete_remote_tag_uses_full_ref() -> None:
    spec = build_command(Operation.GIT_DELETE_REMOTE_TAG, remote="origin", tag="v1.0")

    assert spec.args == ("push", "origin", "--delete", "refs/tags/v1.0")
