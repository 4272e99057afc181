"""
Supabase Record Store adapter for Affiliate Scout.
Talks to the PostgREST endpoint of a Supabase project over httpx.
"""
from typing import Any, Dict, List, Optional

import httpx

from affiliate_scout.adapters.record_store import to_plain_fields
from affiliate_scout.errors import ConfigurationError, RecordStoreError
from affiliate_scout.models.subject import PendingSubject, Subject, SubjectStatus
from affiliate_scout.utils.logger import LayerLogger


class SupabaseRecordStore:
    """
    Record store backed by a Supabase table (``affiliate_links`` by default).

    Every call opens a short-lived AsyncClient; any non-2xx answer from
    PostgREST is raised as RecordStoreError.
    """

    def __init__(
        self,
        url: Optional[str],
        api_key: Optional[str],
        table: str = "affiliate_links",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not url or not api_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY are required for the Supabase store")
        self.base_url = f"{url.rstrip('/')}/rest/v1/{table}"
        self.api_key = api_key
        self.table = table
        self.timeout = timeout
        self.transport = transport
        self.logger = LayerLogger("supabase_store")

    def _get_headers(self, **extra) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        params: Dict[str, Any],
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    self.base_url,
                    params=params,
                    json=json,
                    headers=headers or self._get_headers(),
                )
        except httpx.HTTPError as e:
            self.logger.log_error(
                f"Supabase request failed: {str(e)}",
                error_type="transport_error",
                method=method,
                table=self.table,
            )
            raise RecordStoreError(f"Supabase request failed: {e}") from e

        if response.status_code >= 400:
            self.logger.log_error(
                "Supabase rejected request",
                error_type="store_rejected",
                method=method,
                table=self.table,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise RecordStoreError(
                f"Supabase {method} failed with {response.status_code}: {response.text[:200]}"
            )
        return response

    def _rows(self, response: httpx.Response) -> List[Dict[str, Any]]:
        """Decode a PostgREST JSON array; anything else is a store error."""
        try:
            rows = response.json()
        except ValueError as e:
            raise RecordStoreError(f"Supabase returned invalid JSON: {e}") from e
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise RecordStoreError(f"Supabase returned {type(rows).__name__}, expected a list of rows")
        return rows

    async def fetch_pending(self, limit: int) -> List[PendingSubject]:
        response = await self._request("GET", {
            "select": "id,tool_name,website_url",
            "status": f"eq.{SubjectStatus.PENDING.value}",
            "order": "created_at.asc",
            "limit": str(limit),
        })
        rows = self._rows(response)
        self.logger.log_action("fetch_pending", "completed", requested=limit, returned=len(rows))
        try:
            return [
                PendingSubject(
                    id=str(row["id"]),
                    tool_name=str(row.get("tool_name") or ""),
                    website_url=str(row.get("website_url") or ""),
                )
                for row in rows
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise RecordStoreError(f"Malformed pending row: {e!r}") from e

    async def get_subject(self, subject_id: str) -> Optional[Subject]:
        response = await self._request("GET", {"select": "*", "id": f"eq.{subject_id}"})
        rows = self._rows(response)
        if not rows:
            return None
        try:
            return Subject.from_row(rows[0])
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise RecordStoreError(f"Malformed subject row {subject_id}: {e!r}") from e

    async def count_pending(self) -> int:
        response = await self._request(
            "HEAD",
            {"select": "id", "status": f"eq.{SubjectStatus.PENDING.value}"},
            headers=self._get_headers(Prefer="count=exact"),
        )
        return _parse_content_range_total(response.headers.get("content-range"))

    async def list_ids_by_status(self, status: str) -> List[str]:
        response = await self._request("GET", {"select": "id", "status": f"eq.{status}"})
        try:
            return [str(row["id"]) for row in self._rows(response)]
        except (KeyError, TypeError) as e:
            raise RecordStoreError(f"Malformed id row: {e!r}") from e

    async def update_subject(self, subject_id: str, fields: Dict[str, Any]) -> None:
        await self._request(
            "PATCH",
            {"id": f"eq.{subject_id}"},
            json=to_plain_fields(fields),
            headers=self._get_headers(Prefer="return=minimal"),
        )
        self.logger.log_action("update_subject", "completed", subject_id=subject_id, fields=sorted(fields))


def _parse_content_range_total(value: Optional[str]) -> int:
    """PostgREST answers ``0-24/312`` or ``*/0``; the total follows the slash."""
    if not value or "/" not in value:
        raise RecordStoreError(f"Missing count in Content-Range header: {value!r}")
    total = value.rsplit("/", 1)[1]
    if not total.isdigit():
        raise RecordStoreError(f"Unknown total in Content-Range header: {value!r}")
    return int(total)
