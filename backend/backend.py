import logging

import requests
from flask import Flask, Response, jsonify, redirect, request
from flask_cors import CORS

from canvas import canvas_request, fetch_profile, is_valid_canvas_url, normalize_domain
from . import config
from .normalize import RELAYED_HEADERS, error_response, profile_response, proxy_response

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
# Relay Canvas JSON with its keys in the order Canvas sent them
app.json.sort_keys = False
# Expose Link so browser code can read Canvas pagination off proxied responses
CORS(app, origins=config.CORS_ORIGINS, expose_headers=list(RELAYED_HEADERS))

INVALID_DOMAIN_MESSAGE = "Invalid Canvas domain format."


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def is_json_request():
    """True when the caller declared a JSON body (charset and other params allowed)."""
    return request.mimetype == "application/json"


def upstream_failure(tag, e):
    """
    Turn a requests transport error into a JSON reply.

    Timeouts map to 504, everything else (DNS, refused connection, TLS) to 502.
    """
    status = 504 if isinstance(e, requests.exceptions.Timeout) else 502
    logger.warning(f"[{tag}] Could not reach Canvas: {type(e).__name__}: {e}")
    return error_response(
        "Failed to reach the Canvas API.",
        status,
        details=f"{type(e).__name__}: {e}",
    )


def text_response(message, status, headers=None):
    return Response(message, status=status, mimetype="text/plain", headers=headers)


# ============================================================================
# API PROXY
# ============================================================================

@app.route("/api-proxy", methods=["POST"])
def api_proxy():
    """
    Forward an arbitrary Canvas API call.

    Body: {"canvas_domain": "...", "api_token": "...", "target_endpoint": "/api/v1/courses",
           "target_method": "GET", "target_body": null}
    """
    try:
        if not is_json_request():
            return error_response("Request body must be JSON.", 415)

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return error_response("Request body must be a valid JSON object.", 400)

        canvas_domain = data.get("canvas_domain")
        api_token = data.get("api_token")
        target_endpoint = data.get("target_endpoint")
        target_method = data.get("target_method") or "GET"
        target_body = data.get("target_body")

        if not canvas_domain or not api_token or not target_endpoint:
            return error_response(
                "Missing required parameters: canvas_domain, api_token, or target_endpoint.",
                400,
            )
        if not all(isinstance(v, str) for v in (canvas_domain, api_token, target_endpoint, target_method)):
            return error_response(
                "Parameters canvas_domain, api_token, target_endpoint and target_method must be strings.",
                400,
            )

        base_url = normalize_domain(canvas_domain)
        if not is_valid_canvas_url(base_url):
            return error_response(INVALID_DOMAIN_MESSAGE, 400)

        try:
            upstream = canvas_request(
                base_url,
                api_token,
                target_endpoint,
                method=target_method,
                body=target_body,
                timeout=config.CANVAS_REQUEST_TIMEOUT,
            )
        except requests.exceptions.RequestException as e:
            return upstream_failure("PROXY", e)

        return proxy_response(upstream)

    except Exception as e:
        logger.exception(f"[PROXY] Error in api-proxy: {e}")
        return error_response(
            "An unexpected error occurred in the API proxy.",
            500,
            details=str(e),
        )


@app.route("/api-proxy", methods=["GET"])
def api_proxy_info():
    return jsonify({"message": "API Proxy is active. Use POST to make requests to Canvas API."})


# ============================================================================
# PROFILE CHECK
# ============================================================================

@app.route("/canvas-api", methods=["POST"])
def canvas_api():
    """
    Validate a domain/token pair by fetching the user's Canvas profile.

    Body: {"canvas_domain": "school.instructure.com", "api_token": "..."}
    """
    try:
        if not is_json_request():
            return error_response("Request must be JSON", 415)

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}

        canvas_domain = data.get("canvas_domain")
        api_token = data.get("api_token")

        if not isinstance(canvas_domain, str) or canvas_domain.strip() == "":
            return error_response("Canvas domain is required", 400)
        if not isinstance(api_token, str) or api_token.strip() == "":
            return error_response("API token is required", 400)

        base_url = normalize_domain(canvas_domain)
        if not is_valid_canvas_url(base_url):
            return error_response(INVALID_DOMAIN_MESSAGE, 400)

        try:
            upstream = fetch_profile(base_url, api_token, timeout=config.CANVAS_REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            return upstream_failure("PROFILE", e)

        return profile_response(upstream)

    except Exception as e:
        logger.exception(f"[PROFILE] Error in canvas-api: {e}")
        return error_response("An unexpected server error occurred.", 500, details=str(e))


# ============================================================================
# LOGIN REDIRECT
# ============================================================================

@app.route("/login-redirect", methods=["POST"])
def login_redirect():
    """Redirect the browser to the Canvas instance submitted in the login form."""
    try:
        canvas_domain = request.form.get("canvas_domain")

        if not canvas_domain or canvas_domain.strip() == "":
            return text_response("Canvas domain is required.", 400)

        full_url = normalize_domain(canvas_domain)
        if not is_valid_canvas_url(full_url):
            return text_response(
                "Invalid Canvas domain format. Please ensure it is a valid URL "
                "(e.g., yourschool.instructure.com or https://yourschool.instructure.com).",
                400,
            )

        logger.info(f"[LOGIN] Redirecting to {full_url}")
        return redirect(full_url, code=302)

    except Exception as e:
        logger.exception(f"[LOGIN] Error in login-redirect: {e}")
        return text_response("An unexpected error occurred.", 500)


@app.route("/health", methods=["GET"])
def health_check():
    """Check if the server is running."""
    return jsonify({"status": "healthy"})


# ============================================================================
# METHOD NOT ALLOWED
# ============================================================================

# path -> (message, Allow header) for JSON endpoints
JSON_METHOD_NOT_ALLOWED = {
    "/api-proxy": (
        "Method not allowed. Only POST requests are accepted to this proxy endpoint.",
        "POST, GET",
    ),
    "/canvas-api": (
        "This endpoint only accepts POST requests with JSON data.",
        "POST",
    ),
}


@app.errorhandler(405)
def method_not_allowed(e):
    """Answer any unrouted method in the endpoint's own format instead of Werkzeug's HTML page."""
    if request.path in JSON_METHOD_NOT_ALLOWED:
        message, allow = JSON_METHOD_NOT_ALLOWED[request.path]
        return error_response(message, 405, headers={"Allow": allow})

    if request.path == "/login-redirect":
        return text_response(
            "This endpoint only accepts POST requests. Please submit the form from the main page.",
            405,
            headers={"Allow": "POST"},
        )

    return e
