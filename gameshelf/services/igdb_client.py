from __future__ import annotations

import logging
from typing import List, Optional

import requests
from pydantic import ValidationError

from ..core.config import (
    IGDB_ACCESS_TOKEN,
    IGDB_API_URL,
    IGDB_CLIENT_ID,
    IGDB_REQUEST_TIMEOUT_SECONDS,
)
from ..core.errors import ProviderError
from ..schemas import ProviderGame

logger = logging.getLogger(__name__)

GAME_FIELDS = (
    "id,name,summary,storyline,rating,first_release_date,"
    "cover.url,screenshots.url,genres.name,platforms.name,"
    "involved_companies.company.name,involved_companies.developer,"
    "involved_companies.publisher"
)


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class IgdbClient:
    """Thin client over the IGDB v4 games endpoint.

    Credentials are static for the life of the process. Calls are never
    retried; ``timeout`` of None waits for the provider indefinitely.
    """

    def __init__(
        self,
        client_id: str = IGDB_CLIENT_ID,
        access_token: str = IGDB_ACCESS_TOKEN,
        base_url: str = IGDB_API_URL,
        timeout: Optional[float] = IGDB_REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _headers(self) -> dict:
        return {
            "Client-ID": self.client_id,
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    def _query_games(self, body: str) -> List[ProviderGame]:
        try:
            response = self.http.post(
                f"{self.base_url}/games",
                data=body.encode("utf-8"),
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("IGDB request failed: %s", exc)
            raise ProviderError()

        if not response.ok:
            logger.error("IGDB API request failed: %s", response.status_code)
            raise ProviderError()

        try:
            payload = response.json()
        except ValueError:
            logger.error("IGDB returned a non-JSON body")
            raise ProviderError()
        if not isinstance(payload, list):
            logger.error("IGDB returned an unexpected payload type: %s", type(payload).__name__)
            raise ProviderError()

        try:
            return [ProviderGame.model_validate(item) for item in payload]
        except ValidationError as exc:
            logger.error("IGDB returned a malformed game record: %s", exc)
            raise ProviderError()

    def search(self, query: str, limit: int = 10) -> List[ProviderGame]:
        body = f"search {_quote(query)}; fields {GAME_FIELDS}; limit {int(limit)};"
        return self._query_games(body)

    def fetch_by_id(self, igdb_id: int) -> Optional[ProviderGame]:
        body = f"fields {GAME_FIELDS}; where id = {int(igdb_id)};"
        games = self._query_games(body)
        return games[-1] if games else None
