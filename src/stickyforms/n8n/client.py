"""Minimal HTTP client for the n8n REST API and the execution backend."""

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Optional
from urllib.parse import quote

import requests

from stickyforms.core.exceptions import N8nClientError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-N8N-API-KEY"
DEFAULT_TIMEOUT = 30


def _user_agent() -> str:
    try:
        return f"stickyforms/{version('stickyforms')}"
    except PackageNotFoundError:
        return "stickyforms/dev"


class N8nClient:
    """Talks to an n8n instance and to the backend that executes workflows.

    Args:
        base_url: n8n base URL, e.g. ``http://localhost:5678``
        api_key: Optional n8n API key, sent as ``X-N8N-API-KEY``
        timeout: Request timeout in seconds
        session: Optional requests.Session (tests pass a mock)
        backend_url: Base URL of the execution backend
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        backend_url: Optional[str] = None,
    ):
        if not base_url:
            raise ValueError("n8n base URL is required")
        if timeout <= 0:
            raise ValueError(f"Timeout must be a positive number, got: {timeout}")

        self.base_url = base_url.rstrip("/")
        self.backend_url = (backend_url or self.base_url).rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Any, session: Optional[requests.Session] = None) -> "N8nClient":
        """Build a client from StickyFormsSettings."""
        return cls(
            base_url=settings.n8n.base_url,
            api_key=settings.n8n.api_key,
            timeout=settings.n8n.timeout,
            session=session,
            backend_url=settings.n8n.backend_url,
        )

    def _headers(self, include_api_key: bool = True) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": _user_agent()}
        if include_api_key and self.api_key:
            headers[API_KEY_HEADER] = self.api_key
        return headers

    @staticmethod
    def _parse_body(response: requests.Response) -> Any:
        """JSON body, or ``{message, status}`` when the response is not JSON."""
        try:
            return response.json()
        except ValueError:
            return {"message": response.text, "status": response.status_code}

    def _request(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        include_api_key: bool = True,
    ) -> Any:
        logger.debug(f"{method} {url}", extra={"phase": "n8n_request"})
        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._headers(include_api_key),
                json=json_body,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise N8nClientError(f"Request timed out after {self.timeout} seconds", url=url, original_error=e) from e
        except requests.ConnectionError as e:
            raise N8nClientError(
                "Could not connect. Check the URL is correct and the service is running",
                url=url,
                original_error=e,
            ) from e
        except requests.RequestException as e:
            raise N8nClientError(f"HTTP request failed: {e}", url=url, original_error=e) from e

        body = self._parse_body(response)
        if not response.ok:
            detail = body.get("message") if isinstance(body, dict) else None
            raise N8nClientError(
                detail or response.reason or "Request failed",
                url=url,
                status_code=response.status_code,
            )
        return body

    def list_workflows(self) -> list[dict[str, Any]]:
        """All workflows visible to the API key."""
        body = self._request("GET", f"{self.base_url}/api/v1/workflows")
        if isinstance(body, dict) and isinstance(body.get("data"), list):
            return body["data"]
        if isinstance(body, list):
            return body
        raise N8nClientError("Unexpected response shape for workflow list", url=f"{self.base_url}/api/v1/workflows")

    def get_workflow(self, workflow_id: str) -> dict[str, Any]:
        """One workflow definition, including its nodes."""
        url = f"{self.base_url}/api/v1/workflows/{quote(str(workflow_id), safe='')}"
        body = self._request("GET", url)
        if not isinstance(body, dict):
            raise N8nClientError("Unexpected response shape for workflow", url=url)
        return body

    def execute_workflow(self, workflow_id: str, payload: dict[str, Any]) -> Any:
        """Run a workflow through the execution backend."""
        url = f"{self.backend_url}/api/n8n/workflows/{quote(str(workflow_id), safe='')}/execute"
        logger.info(f"Executing workflow {workflow_id}", extra={"phase": "execute", "workflow_id": workflow_id})
        return self._request("POST", url, json_body=payload)

    def send_webhook(self, url: str, payload: dict[str, Any]) -> Any:
        """POST a payload straight to a workflow webhook.

        The n8n API key is not sent: webhooks are public endpoints.
        """
        if not url:
            raise ValueError("Webhook URL is required")
        logger.info(f"Sending payload to webhook {url}", extra={"phase": "webhook"})
        return self._request("POST", url, json_body=payload, include_api_key=False)
