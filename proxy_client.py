import json
import os

import requests
from dotenv import load_dotenv


class CanvasProxyError(Exception):
    """Raised when the proxy (or Canvas behind it) reports a failed request."""

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class CanvasProxyClient:
    """
    Talks to Canvas through the /api-proxy endpoint, the same way the
    Canvas Lite dashboard does from the browser.
    """

    def __init__(self, proxy_url, canvas_domain, api_token, timeout=30, session=None):
        """
        Args:
            proxy_url: Base URL where the backend is served, e.g. http://127.0.0.1:5000
            canvas_domain: Canvas domain, e.g. school.instructure.com
            api_token: Canvas personal access token
            timeout: Seconds to wait on the proxy
            session: Optional requests.Session to reuse connections
        """
        self.proxy_url = proxy_url.rstrip("/")
        self.canvas_domain = canvas_domain
        self.api_token = api_token
        self.timeout = timeout
        self.session = session or requests.Session()
        # rel -> url from the last response's Link header
        self.links = {}

    def request(self, endpoint, method="GET", body=None):
        """
        Call a Canvas API endpoint through the proxy.

        Returns:
            Decoded JSON, or None when Canvas answered 204 No Content.

        Raises:
            CanvasProxyError: credentials missing, the proxy returned a non-2xx
                status, or a success reply was not JSON
        """
        if not self.canvas_domain or not self.api_token:
            raise CanvasProxyError("Canvas domain or API token is missing.")

        payload = {
            "canvas_domain": self.canvas_domain,
            "api_token": self.api_token,
            "target_endpoint": endpoint,
            "target_method": method,
            "target_body": body,
        }
        response = self.session.post(
            f"{self.proxy_url}/api-proxy",
            json=payload,
            timeout=self.timeout,
        )
        self.links = {rel: link["url"] for rel, link in response.links.items() if "url" in link}

        if not response.ok:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {"message": "Unknown error occurred"}
            message = None
            if isinstance(error_data, dict):
                message = error_data.get("error") or error_data.get("message")
            raise CanvasProxyError(
                message or f"API request failed with status {response.status_code}",
                status_code=response.status_code,
                payload=error_data,
            )

        if response.status_code == 204:
            return None
        try:
            return response.json()
        except ValueError:
            raise CanvasProxyError(
                f"Expected JSON from the proxy, got {response.headers.get('Content-Type') or 'no content type'}",
                status_code=response.status_code,
                payload=response.text,
            )

    def verify(self):
        """Check the credentials by fetching the user's own profile."""
        return self.request("/api/v1/users/self/profile")

    def get_courses(self):
        return self.request("/api/v1/courses?enrollment_state=active&include[]=term") or []

    def get_course(self, course_id):
        return self.request(f"/api/v1/courses/{course_id}")

    def get_announcements(self, course_id):
        return self.request(f"/api/v1/announcements?context_codes[]=course_{course_id}") or []


if __name__ == "__main__":
    load_dotenv()

    client = CanvasProxyClient(
        os.getenv("CANVAS_PROXY_URL", "http://127.0.0.1:5000"),
        os.getenv("CANVAS_DOMAIN", ""),
        os.getenv("CANVAS_API_KEY", ""),
    )

    try:
        profile = client.verify()
        print(f"Logged in as {profile.get('name') or profile.get('short_name') or 'N/A'}")
        courses = client.get_courses()
        print(f"Found {len(courses)} active courses.")
        print(json.dumps(
            [{"id": c.get("id"), "name": c.get("name"), "course_code": c.get("course_code")} for c in courses],
            indent=2,
        ))
        if "next" in client.links:
            print(f"More courses available at: {client.links['next']}")
    except CanvasProxyError as e:
        print(f"Request failed: {e}")
    except requests.exceptions.RequestException as e:
        print(f"Could not reach the proxy: {e}")
