"""Client for the doctors-by-pathology matching service."""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from medsearch.core.config import Settings, get_settings, require
from medsearch.core.errors import FetchError

logger = logging.getLogger(__name__)

_FUNCTION_PATH = "functions/v1/doctors-by-pathology"


def build_session() -> requests.Session:
    """Session retrying a GET once when a gateway answers 502/503/504.

    Timeouts and connection failures are not retried, so one call waits at
    most two timeout periods plus the backoff.
    """
    session = requests.Session()
    retries = Retry(
        total=1,
        connect=0,
        read=False,
        status=1,
        backoff_factor=0.5,
        status_forcelist=(502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    session.mount("http://", HTTPAdapter(max_retries=retries))
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


class MatchingServiceClient:
    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._session = session or build_session()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "MatchingServiceClient":
        settings = settings or get_settings()
        base_url = require(settings.match_service_url, "MATCH_SERVICE_URL")
        return cls(base_url, token=settings.match_service_token, timeout=settings.request_timeout)

    def doctors_by_pathology(self, pathology_id: str) -> List[Dict[str, Any]]:
        """Return the raw doctor records the service associates with a pathology.

        Any transport failure, timeout or non-2xx response is raised as FetchError.
        """
        url = f"{self.base_url}/{_FUNCTION_PATH}"
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            response = self._session.get(
                url, params={"pathology_id": pathology_id}, headers=headers, timeout=self.timeout
            )
        except requests.Timeout as exc:
            logger.error("Matching service timed out for pathology_id=%s", pathology_id)
            raise FetchError(f"Matching service did not answer within {self.timeout:g}s") from exc
        except requests.RequestException as exc:
            logger.error("Failed to call matching service: %s", exc)
            raise FetchError(f"Could not reach matching service: {exc}") from exc

        if not (200 <= response.status_code < 300):
            logger.error(
                "Matching service returned non-2xx status (%s): %s", response.status_code, response.text[:500]
            )
            raise FetchError(f"Error {response.status_code}: {response.reason}", status=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError("Matching service returned invalid JSON", status=response.status_code) from exc
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise FetchError("Matching service returned an unexpected payload", status=response.status_code)
        return payload
