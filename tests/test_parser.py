from __future__ import annotations

import pytest

from monorepo_helper.versioning import parser


@pytest.mark.parametrize(
    ("pretty", "normalized"),
    [
        ("1.2.3", "1.2.3.0"),
        ("v2.0.0", "2.0.0.0"),
        ("1.0.0-alpha1", "1.0.0.0-alpha1"),
        ("1.0-RC2", "1.0.0.0-RC2"),
        ("1.0.0-dev", "1.0.0.0-dev"),
        ("2.x-dev", "2.9999999.9999999.9999999-dev"),
        ("2.0.x-dev", "2.0.9999999.9999999-dev"),
        ("dev-master", "dev-master"),
        ("dev-feature/login", "dev-feature/login"),
        ("master", "dev-master"),
    ],
)
def test_normalize(pretty: str, normalized: str) -> None:
    assert parser.normalize(pretty) == normalized


@pytest.mark.parametrize("invalid", ["", "not a version!", "dev-", "1.0.0+local", "1!2.0"])
def test_normalize_rejects_invalid_versions(invalid: str) -> None:
    with pytest.raises(parser.UnexpectedVersionError):
        parser.normalize(invalid)


def test_branch_versions() -> None:
    assert parser.normalize_branch("2.x") == "2.9999999.9999999.9999999-dev"
    assert parser.normalize_branch("feature/login") == "dev-feature/login"
    assert parser.pretty_branch_version("2.x") == "2.x-dev"
    assert parser.pretty_branch_version("2.0") == "2.0.x-dev"
    assert parser.pretty_branch_version("main") == "dev-main"


def test_is_dev() -> None:
    assert parser.is_dev("dev-main")
    assert parser.is_dev("2.x-dev")
    assert not parser.is_dev("2.0.0")


def test_release_prefix() -> None:
    assert parser.release_prefix("v1.4.2") == (1, 4)
    assert parser.release_prefix("3") == (3, 0)
    assert parser.release_prefix("nightly") is None
