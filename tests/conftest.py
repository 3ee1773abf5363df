"""Shared pytest fixtures for the Canvas Lite backend tests.

Upstream Canvas traffic is never sent: tests build requests.Response objects
by hand and patch them in where canvas.canvas_request would return them.
"""
import json
import sys
from http import HTTPStatus
from pathlib import Path

import pytest
import requests

# Make the root-level modules (canvas, proxy_client) importable without installing
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from backend import app as flask_app  # noqa: E402

_MISSING = object()


def build_response(status=200, json_body=_MISSING, text="", content_type="application/json",
                   headers=None, reason=None, url="https://school.instructure.com/api/v1/test"):
    """Create a requests.Response as if Canvas had answered."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason if reason is not None else HTTPStatus(status).phrase
    response.url = url
    response.encoding = "utf-8"
    if json_body is not _MISSING:
        response._content = json.dumps(json_body).encode("utf-8")
    else:
        response._content = text.encode("utf-8")
    if content_type:
        response.headers["Content-Type"] = content_type
    for name, value in (headers or {}).items():
        response.headers[name] = value
    return response


@pytest.fixture
def make_upstream():
    return build_response


@pytest.fixture
def app():
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def proxy_payload():
    return {
        "canvas_domain": "school.instructure.com",
        "api_token": "secret-token",
        "target_endpoint": "/api/v1/courses",
    }
