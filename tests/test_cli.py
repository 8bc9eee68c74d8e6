from __future__ import annotations

import json

import responses

BACKEND = "https://cms.example.com"


@responses.activate
def test_resolve_path_command_prints_resolution_and_decision(app, load_json_fixture):
    responses.add(
        responses.GET, f"{BACKEND}/jsonapi/resolve", json=load_json_fixture("resolve_about_us.json")
    )
    runner = app.test_cli_runner()

    result = runner.invoke(args=["resolve-path", "about-us", "--langcode", "en"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["path"] == "/about-us"
    assert payload["kind"] == "entity"
    assert payload["headless"] is True
    assert payload["result"]["entity"]["type"] == "node--page"
    assert payload["decision"]["action"] == "render_entity"
    assert "langcode=en" in responses.calls[0].request.url


@responses.activate
def test_resolve_path_command_reports_failures(app):
    responses.add(responses.GET, f"{BACKEND}/jsonapi/resolve", status=500)
    runner = app.test_cli_runner()

    result = runner.invoke(args=["resolve-path", "/about-us"])

    assert result.exit_code == 1
    assert "Resolver failed: Server error 500" in result.output
    assert BACKEND not in result.output


def test_resolve_path_command_requires_backend(make_app):
    runner = make_app().test_cli_runner()

    result = runner.invoke(args=["resolve-path", "/about-us"])

    assert result.exit_code == 1
    assert "DRUPAL_BASE_URL" in result.output
