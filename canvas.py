import logging
from urllib.parse import urlsplit

import requests

logger = logging.getLogger(__name__)

PROFILE_ENDPOINT = "/api/v1/users/self/profile"
DEFAULT_TIMEOUT = 30

# Methods that carry a JSON body upstream
BODY_METHODS = ("POST", "PUT", "PATCH")

# Body values that count as "no body"; {} and [] are still sent
EMPTY_BODIES = (None, "", 0, False)


def normalize_domain(domain):
    """
    Turn a user-supplied Canvas domain into an absolute base URL.

    "school.instructure.com" becomes "https://school.instructure.com";
    values that already carry an http(s) scheme are only trimmed.
    """
    full_url = domain.strip()
    if not full_url.startswith("http://") and not full_url.startswith("https://"):
        full_url = f"https://{full_url}"
    return full_url


def is_valid_canvas_url(url):
    """Check that a normalized Canvas URL has an http(s) scheme and a hostname."""
    try:
        parts = urlsplit(url)
        # Accessing .port raises ValueError on a non-numeric or out of range port
        parts.port
    except ValueError:
        return False

    if parts.scheme not in ("http", "https"):
        return False
    if not parts.hostname:
        return False
    if any(ch.isspace() for ch in parts.netloc):
        return False
    return True


def build_api_url(base_url, endpoint):
    """Join the Canvas base URL and an API endpoint such as /api/v1/courses."""
    clean_endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"
    return f"{base_url.rstrip('/')}{clean_endpoint}"


def canvas_request(base_url, token, endpoint, method="GET", body=None, timeout=DEFAULT_TIMEOUT):
    """
    Send one authenticated request to the Canvas REST API.

    Args:
        base_url: Normalized Canvas URL (see normalize_domain)
        token: Canvas personal access token
        endpoint: API path, e.g. "/api/v1/courses?enrollment_state=active"
        method: HTTP method, any case
        body: JSON-serializable body, only sent for POST/PUT/PATCH (an empty
            object or list is still sent; None, "", 0 and False are not)
        timeout: Seconds before the upstream call is abandoned

    Returns:
        The raw requests.Response. Non-2xx statuses are not raised.
    """
    method = method.upper()
    api_url = build_api_url(base_url, endpoint)
    headers = {
        "Authorization": f"Bearer {token}",
        "Accept": "application/json",
    }

    kwargs = {"headers": headers, "timeout": timeout}
    if body not in EMPTY_BODIES and method in BODY_METHODS:
        headers["Content-Type"] = "application/json"
        kwargs["json"] = body

    logger.info(f"[CANVAS] {method} {api_url}")
    response = requests.request(method, api_url, **kwargs)
    logger.info(f"[CANVAS] {method} {api_url} -> {response.status_code}")
    return response


def fetch_profile(base_url, token, timeout=DEFAULT_TIMEOUT):
    """Fetch the profile of the user who owns the token."""
    return canvas_request(base_url, token, PROFILE_ENDPOINT, timeout=timeout)


def is_json_response(response):
    content_type = response.headers.get("Content-Type") or ""
    return "application/json" in content_type
