import logging
from typing import Any

import google.auth
import requests
from google.auth.exceptions import DefaultCredentialsError
from google.auth.transport.requests import AuthorizedSession

from hoist.constants import API_ROOT, AUTH_SCOPES, DEFAULT_REQUEST_TIMEOUT
from hoist.errors import CredentialsError, HostingError
from hoist.types import Manifest, UploadRequirement

from .base import BaseHostingClient

logger = logging.getLogger(__name__)


def site_resource(site: str) -> str:
    """
    Accepts "my-site" or "sites/my-site" and returns the latter.
    """
    site = site.strip("/")
    if site.startswith("sites/"):
        return site
    return f"sites/{site}"


class FirebaseHostingClient(BaseHostingClient):
    """
    Talks to the Firebase Hosting REST API.

    Takes any requests.Session; normally this is a google-auth
    AuthorizedSession, which attaches and refreshes OAuth tokens for us.
    requests sessions are safe to share between the upload threads.
    """

    name = "firebase"

    def __init__(
        self,
        session: requests.Session,
        api_root: str = API_ROOT,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.session = session
        self.api_root = api_root.rstrip("/")
        self.timeout = timeout

    def __str__(self):
        return f"Firebase Hosting ({self.api_root})"

    @classmethod
    def from_default_credentials(cls, **kwargs) -> "FirebaseHostingClient":
        """
        Builds a client from application default credentials (service account
        file, gcloud login, or metadata server).
        """
        try:
            credentials, _ = google.auth.default(scopes=AUTH_SCOPES)
        except DefaultCredentialsError as e:
            raise CredentialsError(f"no usable credentials: {e}") from e
        return cls(AuthorizedSession(credentials), **kwargs)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise HostingError(f"{method} {url}: {e}") from e
        if not response.ok:
            raise HostingError(
                f"{method} {url}: {response.status_code} {_error_detail(response)}",
                status=response.status_code,
            )
        return response

    def _api(self, method: str, resource: str, **kwargs) -> dict[str, Any]:
        response = self._request(method, f"{self.api_root}/{resource}", **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise HostingError(f"{method} {resource}: malformed response") from e

    def create_version(self, site: str, serving_config: dict[str, Any]) -> str:
        data = self._api(
            "POST",
            f"{site_resource(site)}/versions",
            json={"config": serving_config},
        )
        if not data.get("name"):
            raise HostingError("version created without a name")
        logger.debug(f"Created version {data['name']} ({data.get('status')})")
        return data["name"]

    def populate_files(
        self, version_name: str, manifest: Manifest
    ) -> UploadRequirement:
        data = self._api(
            "POST", f"{version_name}:populateFiles", json={"files": manifest}
        )
        return {
            "required_hashes": list(data.get("uploadRequiredHashes", [])),
            "upload_url": data.get("uploadUrl", ""),
        }

    def upload_content(self, endpoint: str, content_hash: str, data: bytes):
        try:
            response = self.session.post(
                endpoint,
                data=data,
                headers={"Content-Type": "application/octet-stream"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise HostingError(f"upload of {content_hash}: {e}") from e
        # Anything but a plain 200 means the content was not stored
        if response.status_code != 200:
            raise HostingError(
                f"upload of {content_hash}: {response.status_code} {response.reason}",
                status=response.status_code,
            )

    def finalize_version(self, version_name: str) -> str:
        data = self._api(
            "PATCH",
            version_name,
            params={"update_mask": "status"},
            json={"status": "FINALIZED"},
        )
        return data.get("status", "")

    def version_status(self, version_name: str) -> str:
        return self._api("GET", version_name).get("status", "")

    def create_release(self, site: str, version_name: str) -> str:
        data = self._api(
            "POST",
            f"{site_resource(site)}/releases",
            params={"versionName": version_name},
            json={},
        )
        return data.get("name", "")


def _error_detail(response: requests.Response) -> str:
    """
    Pulls the message out of a Google API error body, falling back to reason.
    """
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.reason or ""
