from __future__ import annotations

import pytest

from drupal_frontend.routing.guard import safe_redirect_target, url_origin

BACKEND = "https://cms.example.com"


def test_url_origin_normalizes_scheme_host_and_port():
    assert url_origin("https://CMS.example.com/path") == ("https", "cms.example.com", 443)
    assert url_origin("http://cms.example.com:8080") == ("http", "cms.example.com", 8080)
    assert url_origin("ftp://cms.example.com") is None
    assert url_origin("/relative") is None
    assert url_origin("http://cms.example.com:99999") is None


@pytest.mark.parametrize(
    ("candidate", "expected"),
    [
        ("/user/login", "https://cms.example.com/user/login"),
        ("/node/1?destination=/admin", "https://cms.example.com/node/1?destination=/admin"),
        ("https://cms.example.com/about", "https://cms.example.com/about"),
        ("https://CMS.EXAMPLE.COM:443/about", "https://CMS.EXAMPLE.COM:443/about"),
        ("relative/path", "https://cms.example.com/relative/path"),
    ],
)
def test_same_origin_targets_are_kept(candidate, expected):
    assert safe_redirect_target(candidate, BACKEND) == expected


@pytest.mark.parametrize(
    "candidate",
    [
        "https://evil.example.com/phish",
        "//evil.example.com/phish",
        "http://cms.example.com/downgrade",
        "https://cms.example.com:8443/other-port",
        "javascript:alert(1)",
        "data:text/html,hi",
        "/ok\r\nSet-Cookie: a=b",
        "",
        None,
    ],
)
def test_foreign_or_malformed_targets_are_rejected(candidate):
    assert safe_redirect_target(candidate, BACKEND) is None


def test_relative_targets_resolve_against_origin_not_base_path():
    assert (
        safe_redirect_target("/about", "https://cms.example.com/drupal/")
        == "https://cms.example.com/about"
    )


def test_unusable_base_url_rejects_everything():
    assert safe_redirect_target("/about", None) is None
    assert safe_redirect_target("/about", "") is None
    assert safe_redirect_target("/about", "cms.example.com") is None


@pytest.mark.parametrize(
    ("base_url", "expected"),
    [
        ("https://user:pw@cms.example.com", "https://cms.example.com/x"),
        ("http://editor@cms.example.com:8080/drupal", "http://cms.example.com:8080/x"),
        ("http://[::1]:8080", "http://[::1]:8080/x"),
    ],
)
def test_relative_targets_never_carry_base_url_credentials(base_url, expected):
    assert safe_redirect_target("/x", base_url) == expected
