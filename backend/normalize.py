"""
Reshape upstream Canvas responses into what the browser expects.

The browser side of Canvas Lite always calls response.json(), so every
response produced here is JSON except the two cases that cannot be:
a bare 204, and a non-200 success that Canvas answered in plain text.
"""
import logging

from flask import Response, jsonify

from canvas import is_json_response

logger = logging.getLogger(__name__)

# Canvas paginates with RFC 5988 Link headers; they are relayed, never followed
RELAYED_HEADERS = ("Link",)

PROXY_ERROR_PREVIEW = 500
PROFILE_ERROR_PREVIEW = 200


def error_response(message, status, details=None, headers=None):
    """Build the JSON error envelope used by every endpoint."""
    payload = {"error": message}
    if details is not None:
        payload["details"] = details
    response = jsonify(payload)
    response.status_code = status
    if headers:
        response.headers.update(headers)
    return response


def _relay_headers(upstream, response):
    for name in RELAYED_HEADERS:
        value = upstream.headers.get(name)
        if value:
            response.headers[name] = value
    return response


def _read_json(upstream):
    """Return (True, data) when the body parses as JSON, else (False, None)."""
    if not is_json_response(upstream):
        return False, None
    try:
        return True, upstream.json()
    except ValueError:
        logger.warning(f"[PROXY] Canvas sent Content-Type JSON with an unparseable body (status {upstream.status_code})")
        return False, None


def proxy_response(upstream):
    """
    Map a Canvas response onto the /api-proxy reply.

    Args:
        upstream: requests.Response from canvas.canvas_request

    Returns:
        flask.Response
    """
    status = upstream.status_code

    if status == 204:
        response = Response(status=204)
        response.headers.pop("Content-Type", None)
        return _relay_headers(upstream, response)

    parsed, data = _read_json(upstream)
    if parsed:
        response = jsonify(data)
        response.status_code = status
        return _relay_headers(upstream, response)

    text = upstream.text
    if not upstream.ok:
        response = error_response(
            "Canvas API returned non-JSON error",
            status,
            details=text[:PROXY_ERROR_PREVIEW],
        )
        return _relay_headers(upstream, response)

    if status == 200:
        response = jsonify({
            "error": "Received non-JSON success response from Canvas",
            "data": text[:PROXY_ERROR_PREVIEW],
        })
        response.status_code = 502
        return response

    # Other 2xx/3xx without JSON: hand the text through untouched
    response = Response(text, status=status, mimetype="text/plain")
    return _relay_headers(upstream, response)


def _canvas_error_message(body, reason):
    if isinstance(body, dict):
        if body.get("message"):
            return body["message"]
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return errors[0]["message"]
    return reason


def profile_response(upstream):
    """Map a Canvas /users/self/profile response onto the /canvas-api reply."""
    status = upstream.status_code
    reason = upstream.reason or ""
    content_type = upstream.headers.get("Content-Type")

    if status == 204:
        return jsonify({"message": "Request successful, no content returned from Canvas."})

    if not upstream.ok:
        if is_json_response(upstream):
            try:
                body = upstream.json()
            except ValueError:
                text = upstream.text
                return error_response(
                    f"Canvas API Error: {status} {reason}. Non-JSON response: {text[:PROFILE_ERROR_PREVIEW]}",
                    status,
                    details={"rawError": text},
                )
            return error_response(
                f"Canvas API Error: {_canvas_error_message(body, reason)}",
                status,
                details=body,
            )

        text = upstream.text
        return error_response(
            f"Canvas API Error: {status} {reason}. Response: {text[:PROFILE_ERROR_PREVIEW]}",
            status,
            details={"rawError": text},
        )

    if not is_json_response(upstream):
        return error_response(
            "Canvas API returned non-JSON response.",
            502,
            details={
                "status": status,
                "contentType": content_type,
                "bodyPreview": upstream.text[:PROFILE_ERROR_PREVIEW],
            },
        )

    try:
        data = upstream.json()
    except ValueError as e:
        logger.error(f"[PROFILE] Failed to parse JSON from Canvas even after checks: {e}")
        return error_response(
            "Failed to parse JSON response from Canvas.",
            500,
            details={
                "message": str(e),
                "status": status,
                "contentType": content_type,
            },
        )

    response = jsonify(data)
    response.status_code = 200
    return response
