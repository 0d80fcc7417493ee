import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import Config
from ..errors import (
    MalformedPage,
    PublishFailed,
    StoreUnavailable,
    StoreWriteFailed,
)
from ..sync.models import RowPayload, TargetRecord

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 10
RETRY_STATUSES = (429, 500, 502, 503, 504)
RETRY_BACKOFF = 0.5


def describe_error(exc: requests.RequestException) -> str:
    """Return the exception message plus the response body, when there is one."""
    response = getattr(exc, "response", None)
    if response is not None and response.text:
        return f"{exc} ({response.text[:500]})"
    return str(exc)


def build_session(config: Config) -> requests.Session:
    """Create a requests session, with bounded retries if configured."""
    session = requests.Session()
    if config.max_retries > 0:
        # Default allowed_methods: POST (row create, publish) is never resent.
        retry = Retry(
            total=config.max_retries,
            backoff_factor=RETRY_BACKOFF,
            status_forcelist=RETRY_STATUSES,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
    return session


class HubDBClient:
    """Client for one HubDB table.

    All credentials and endpoints come from the ``Config`` passed in, so
    several clients can coexist in one process.
    """

    def __init__(self, config: Config, table_id: str | None = None):
        self.config = config
        self.table_id = table_id or config.table_id
        self.base_url = config.hubdb_url.rstrip("/")
        self.session = build_session(config)
        self.session.headers.update(
            {
                "Authorization": f"Bearer {config.token}",
                "Content-Type": "application/json",
            }
        )

    def _table_url(self, suffix: str = "") -> str:
        return f"{self.base_url}/tables/{self.table_id}{suffix}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Send a request and raise for HTTP error statuses.
        """
        response = self.session.request(
            method,
            url,
            timeout=(CONNECT_TIMEOUT, self.config.timeout),
            **kwargs,
        )
        response.raise_for_status()
        return response

    def _get_json(self, url: str, params: dict | None = None) -> Any:
        try:
            return self._request("GET", url, params=params).json()
        except ValueError as exc:
            raise MalformedPage(f"GET {url} returned invalid JSON") from exc
        except requests.RequestException as exc:
            raise StoreUnavailable(
                f"GET {url} failed: {describe_error(exc)}"
            ) from exc

    def validate_connection(self) -> None:
        """
        Check that the API is reachable and the token is accepted.

        Raises:
            StoreUnavailable: If the request fails.
        """
        self._get_json(f"{self.base_url}/tables")
        logger.info("Successfully connected to HubDB API")

    def get_table_schema(self) -> list[dict[str, Any]] | None:
        """
        Return the table's column definitions, or None if unavailable.

        Informational only; failures are logged and swallowed.
        """
        try:
            data = self._get_json(self._table_url())
        except (StoreUnavailable, MalformedPage) as exc:
            logger.error(
                "Failed to fetch schema for table %s: %s", self.table_id, exc
            )
            return None
        columns = data.get("columns") if isinstance(data, dict) else None
        logger.info("Retrieved schema for table %s", self.table_id)
        return columns

    @staticmethod
    def _objects(data: Any, url: str) -> list[dict[str, Any]]:
        if not isinstance(data, dict) or not isinstance(
            data.get("objects", []), list
        ):
            raise MalformedPage(f"Unexpected row list shape from {url}")
        return data.get("objects", [])

    def fetch_all_rows(self) -> list[TargetRecord]:
        """
        Read every row of the table using limit/offset pagination.

        Stops when a page returns fewer rows than the page size.

        Raises:
            StoreUnavailable: If any page request fails.
            MalformedPage: If a page does not contain an ``objects`` list.
        """
        url = self._table_url("/rows")
        limit = self.config.hubdb_page_size
        offset = 0
        rows: list[TargetRecord] = []

        while True:
            data = self._get_json(url, params={"limit": limit, "offset": offset})
            objects = self._objects(data, url)
            try:
                rows.extend(TargetRecord.from_api(obj) for obj in objects)
            except (KeyError, TypeError, ValueError) as exc:
                raise MalformedPage(
                    f"Unexpected row in table {self.table_id} at offset {offset}: {exc}"
                ) from exc
            logger.debug(
                "Fetched %d rows at offset %d", len(objects), offset
            )
            if len(objects) < limit:
                break
            offset += limit

        logger.info(
            "Retrieved %d rows from table %s", len(rows), self.table_id
        )
        return rows

    def find_row_by_key(self, url_key: str) -> TargetRecord | None:
        """
        Return the first row whose ``url_key`` equals *url_key*, or None.

        Raises:
            StoreUnavailable: On transport failure (never for "not found").
        """
        url = self._table_url("/rows")
        data = self._get_json(url, params={"url_key__eq": url_key})
        objects = self._objects(data, url)
        if not objects:
            return None
        return TargetRecord.from_api(objects[0])

    def create_row(self, payload: RowPayload) -> str:
        """
        Create a row and return its new row id.

        Raises:
            StoreWriteFailed: If the request fails or the response does
                not carry the new row id.
        """
        try:
            response = self._request(
                "POST", self._table_url("/rows"), json=payload.to_api()
            )
        except requests.RequestException as exc:
            raise StoreWriteFailed(
                "create", payload.path, describe_error(exc)
            ) from exc
        try:
            row_id = response.json()["id"]
        except (ValueError, KeyError, TypeError):
            row_id = None
        if row_id in (None, ""):
            raise StoreWriteFailed("create", payload.path, "response has no row id")
        return str(row_id)

    def update_row(self, row_id: str, payload: RowPayload) -> None:
        """
        Replace the values of an existing row.

        Raises:
            StoreWriteFailed: If the request fails.
        """
        try:
            self._request(
                "PUT",
                self._table_url(f"/rows/{row_id}"),
                json=payload.to_api(),
            )
        except requests.RequestException as exc:
            raise StoreWriteFailed(
                "update", row_id, describe_error(exc)
            ) from exc

    def delete_row(self, row_id: str) -> None:
        """
        Delete a row.

        Raises:
            StoreWriteFailed: If the request fails.
        """
        try:
            self._request("DELETE", self._table_url(f"/rows/{row_id}"))
        except requests.RequestException as exc:
            raise StoreWriteFailed(
                "delete", row_id, describe_error(exc)
            ) from exc

    def publish(self) -> None:
        """
        Publish the table draft so pending changes go live.

        Raises:
            PublishFailed: If the request fails.
        """
        try:
            self._request("POST", self._table_url("/draft/publish"), json={})
        except requests.RequestException as exc:
            raise PublishFailed(
                f"Failed to publish table {self.table_id}: {describe_error(exc)}"
            ) from exc
        logger.info("Table %s published successfully", self.table_id)
