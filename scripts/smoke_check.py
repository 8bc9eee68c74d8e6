#!/usr/bin/env python
"""Release smoke check.

Runs the test suite, then drives the frontend in both deployment modes
against the mock backend served on a local port.
"""

from __future__ import annotations

import subprocess
import sys
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from werkzeug.serving import make_server

REPO_ROOT = Path(__file__).resolve().parents[1]

COMMANDS: Sequence[tuple[str, Sequence[str]]] = (
    ("Tests", (sys.executable, "-m", "pytest", "-q")),
)


def run_command(label: str, command: Sequence[str]) -> None:
    print(f"[RUN] {label}: {' '.join(command)}", flush=True)
    subprocess.run(command, cwd=REPO_ROOT, check=True)


@contextmanager
def mock_backend() -> Iterator[tuple[str, object]]:
    sys.path.insert(0, str(REPO_ROOT))
    from scripts.mock_backend import MockState, create_mock_backend

    state = MockState()
    server = make_server("127.0.0.1", 0, create_mock_backend(state))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_port}", state
    finally:
        server.shutdown()
        thread.join(timeout=5)


def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise RuntimeError(message)


def split_routing_scenario(base_url: str, state) -> None:
    print("[RUN] split_routing", flush=True)
    from drupal_frontend import create_app

    app = create_app(
        "production",
        overrides={"DEPLOYMENT_MODE": "split_routing", "DRUPAL_BASE_URL": base_url},
    )
    client = app.test_client()

    response = client.get("/about-us")
    _expect(response.status_code == 200, f"/about-us returned {response.status_code}")
    _expect(b"About Us" in response.data, "/about-us did not render the page title")

    response = client.get("/does-not-exist")
    _expect(response.status_code == 404, f"/does-not-exist returned {response.status_code}")

    response = client.get("/non-headless")
    _expect(response.status_code in (307, 308), f"/non-headless returned {response.status_code}")
    _expect(
        response.headers.get("Location") == f"{base_url}/non-headless",
        "/non-headless redirected somewhere unexpected",
    )


def frontend_first_scenario(base_url: str, state) -> None:
    print("[RUN] frontend_first", flush=True)
    from drupal_frontend import create_app

    app = create_app(
        "production",
        overrides={
            "DEPLOYMENT_MODE": "nextjs_first",
            "DRUPAL_BASE_URL": base_url,
            "DRUPAL_PROXY_SECRET": state.proxy_secret,
        },
    )
    client = app.test_client()

    state.requests.clear()
    response = client.get("/non-headless")
    _expect(response.status_code == 200, f"/non-headless returned {response.status_code}")
    _expect(b"Drupal HTML" in response.data, "/non-headless was not proxied")

    state.requests.clear()
    response = client.get("/sites/default/files/test.txt")
    _expect(response.data == b"TEST FILE", "backend file was not proxied")
    _expect(
        not any(item.path == "/jsonapi/resolve" for item in state.requests),
        "backend-only path triggered a resolver call",
    )
    _expect(all(item.proxy_secret_ok for item in state.requests), "proxy secret missing")

    response = client.get("/about-us")
    _expect(b"About Us" in response.data, "headless page was not rendered locally")


def main() -> int:
    try:
        for label, command in COMMANDS:
            run_command(label, command)
        with mock_backend() as (base_url, state):
            split_routing_scenario(base_url, state)
            frontend_first_scenario(base_url, state)
    except subprocess.CalledProcessError as exc:
        print(f"[FAIL] {exc}", file=sys.stderr)
        return exc.returncode or 1
    except Exception as exc:
        print(f"[FAIL] {exc}", file=sys.stderr)
        return 1

    print("[OK] Smoke check succeeded")
    return 0


if __name__ == "__main__":
    sys.exit(main())
