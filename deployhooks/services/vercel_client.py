"""Thin async client for the Vercel deployments API and deploy hooks.

Every failure is raised as `VercelApiError`; nothing is retried here.
"""

import json

import httpx

from deployhooks.logging_config import get_logger
from deployhooks.services.exceptions import ApiErrorKind, VercelApiError

logger = get_logger(__name__)

VERCEL_API = "https://api.vercel.com"


class VercelClient:
    def __init__(
        self,
        bearer_token: str,
        api_url: str = VERCEL_API,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.bearer_token = bearer_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.bearer_token}"}

    def _scope_params(self, team_id: str | None, project_id: str | None) -> dict:
        params = {}
        if team_id:
            params["teamId"] = team_id
        if project_id:
            params["projectId"] = project_id
        return params

    async def _request(self, method: str, url: str, params: dict | None = None):
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(method, url, headers=self.headers, params=params)
            except httpx.TimeoutException:
                logger.warning("[Vercel] Request timed out", method=method, url=url)
                raise VercelApiError(
                    ApiErrorKind.TRANSPORT,
                    f"{method} {url} timed out after {self.timeout}s",
                    timeout=True,
                )
            except httpx.RequestError as e:
                logger.warning("[Vercel] Request failed", method=method, url=url, error=str(e))
                raise VercelApiError(ApiErrorKind.TRANSPORT, f"{method} {url} failed: {e}")

        if response.status_code == 404:
            raise VercelApiError(ApiErrorKind.NOT_FOUND, response.text or "Not found", status_code=404)
        if not response.is_success:
            logger.warning("[Vercel] Unexpected status", method=method, url=url, status_code=response.status_code)
            raise VercelApiError(
                ApiErrorKind.TRANSPORT,
                f"{response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise VercelApiError(
                ApiErrorKind.MALFORMED_RESPONSE,
                f"{method} {url} returned a body that is not JSON",
                status_code=response.status_code,
            )

    async def list_deployments(
        self,
        team_id: str | None,
        project_id: str | None,
        from_: str | int,
        limit: int = 1,
    ) -> list[dict]:
        """List the most recent deployments created since `from_`."""
        params = self._scope_params(team_id, project_id)
        params["limit"] = limit
        params["from"] = from_

        data = await self._request("GET", f"{self.api_url}/v3/deployments", params=params)
        if not isinstance(data, dict):
            raise VercelApiError(ApiErrorKind.MALFORMED_RESPONSE, "Deployment list is not an object")

        deployments = data.get("deployments") or []
        if not isinstance(deployments, list):
            raise VercelApiError(ApiErrorKind.MALFORMED_RESPONSE, "'deployments' is not a list")
        return deployments

    async def get_deployment(
        self,
        deployment_id: str,
        team_id: str | None = None,
        project_id: str | None = None,
    ) -> dict:
        params = self._scope_params(team_id, project_id)
        data = await self._request("GET", f"{self.api_url}/v3/deployments/{deployment_id}", params=params)
        if not isinstance(data, dict):
            raise VercelApiError(ApiErrorKind.MALFORMED_RESPONSE, "Deployment details are not an object")
        return data

    async def trigger_build(self, webhook_url: str) -> dict:
        """POST to the deploy hook. Returns the `{job: {...}}` body."""
        data = await self._request("POST", webhook_url)
        if not isinstance(data, dict) or not isinstance(data.get("job"), dict):
            raise VercelApiError(ApiErrorKind.MALFORMED_RESPONSE, "Deploy hook response has no job")
        return data
