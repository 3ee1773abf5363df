from unittest.mock import patch

import pytest
import requests

CREDENTIALS = {"canvas_domain": "school.instructure.com", "api_token": "secret-token"}


def post_profile(client, payload):
    return client.post("/canvas-api", json=payload)


def test_rejects_non_json(client):
    r = client.post("/canvas-api", data="canvas_domain=x", content_type="text/plain")
    assert r.status_code == 415
    assert r.get_json() == {"error": "Request must be JSON"}


@pytest.mark.parametrize("payload,message", [
    ({"api_token": "t"}, "Canvas domain is required"),
    ({"canvas_domain": "   ", "api_token": "t"}, "Canvas domain is required"),
    ({"canvas_domain": 42, "api_token": "t"}, "Canvas domain is required"),
    ({"canvas_domain": "a.edu"}, "API token is required"),
    ({"canvas_domain": "a.edu", "api_token": ""}, "API token is required"),
])
def test_required_fields(client, payload, message):
    r = post_profile(client, payload)
    assert r.status_code == 400
    assert r.get_json() == {"error": message}


def test_invalid_domain(client):
    r = post_profile(client, {"canvas_domain": "https://", "api_token": "t"})
    assert r.status_code == 400
    assert r.get_json() == {"error": "Invalid Canvas domain format."}


def test_profile_success(client, make_upstream):
    profile = {"id": 7, "name": "Ada Lovelace", "short_name": "Ada"}
    with patch("backend.backend.fetch_profile", return_value=make_upstream(json_body=profile)) as mock_fetch:
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 200
    assert r.get_json() == profile
    args, _ = mock_fetch.call_args
    assert args == ("https://school.instructure.com", "secret-token")


def test_profile_no_content(client, make_upstream):
    with patch("backend.backend.fetch_profile", return_value=make_upstream(204, content_type=None)):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 200
    assert r.get_json() == {"message": "Request successful, no content returned from Canvas."}


def test_json_error_uses_canvas_message(client, make_upstream):
    body = {"errors": [{"message": "Invalid access token."}]}
    with patch("backend.backend.fetch_profile", return_value=make_upstream(401, json_body=body)):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 401
    assert r.get_json() == {"error": "Canvas API Error: Invalid access token.", "details": body}


def test_json_error_falls_back_to_reason(client, make_upstream):
    with patch("backend.backend.fetch_profile", return_value=make_upstream(403, json_body={"status": "unauthorized"})):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 403
    assert r.get_json()["error"] == "Canvas API Error: Forbidden"


def test_unparseable_json_error(client, make_upstream):
    with patch("backend.backend.fetch_profile", return_value=make_upstream(500, text="{broken")):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 500
    data = r.get_json()
    assert data["error"] == "Canvas API Error: 500 Internal Server Error. Non-JSON response: {broken"
    assert data["details"] == {"rawError": "{broken"}


def test_html_error(client, make_upstream):
    html = "<html>" + "x" * 300 + "</html>"
    with patch("backend.backend.fetch_profile", return_value=make_upstream(404, text=html, content_type="text/html")):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 404
    data = r.get_json()
    assert data["error"] == f"Canvas API Error: 404 Not Found. Response: {html[:200]}"
    assert data["details"] == {"rawError": html}


def test_ok_but_not_json(client, make_upstream):
    with patch("backend.backend.fetch_profile", return_value=make_upstream(200, text="<html>", content_type="text/html")):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 502
    assert r.get_json() == {
        "error": "Canvas API returned non-JSON response.",
        "details": {"status": 200, "contentType": "text/html", "bodyPreview": "<html>"},
    }


def test_ok_with_unparseable_json(client, make_upstream):
    with patch("backend.backend.fetch_profile", return_value=make_upstream(200, text="{nope")):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 500
    data = r.get_json()
    assert data["error"] == "Failed to parse JSON response from Canvas."
    assert data["details"]["status"] == 200
    assert data["details"]["contentType"] == "application/json"


def test_unreachable_canvas(client):
    with patch("backend.backend.fetch_profile", side_effect=requests.exceptions.ConnectionError("no route")):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 502
    assert r.get_json()["error"] == "Failed to reach the Canvas API."


def test_unexpected_error(client):
    with patch("backend.backend.fetch_profile", side_effect=RuntimeError("boom")):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 500
    assert r.get_json() == {"error": "An unexpected server error occurred.", "details": "boom"}


def test_get_not_allowed(client):
    r = client.get("/canvas-api")
    assert r.status_code == 405
    assert r.headers["Allow"] == "POST"
    assert r.get_json() == {"error": "This endpoint only accepts POST requests with JSON data."}


def test_timeout_is_gateway_timeout(client):
    with patch("backend.backend.fetch_profile", side_effect=requests.exceptions.ConnectTimeout("slow")):
        r = post_profile(client, CREDENTIALS)

    assert r.status_code == 504
    assert r.get_json()["error"] == "Failed to reach the Canvas API."


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE", "TRACE"])
def test_other_methods_not_allowed(client, method):
    r = client.open("/canvas-api", method=method)
    assert r.status_code == 405
    assert r.headers["Allow"] == "POST"
    assert r.get_json() == {"error": "This endpoint only accepts POST requests with JSON data."}
