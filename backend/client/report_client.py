"""
Typed client for the report endpoints.

Every response body is validated against the same Pydantic contracts the
server declares, so a shape drift surfaces as ContractValidationError
instead of a KeyError deep in calling code.
"""
import logging
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError as SchemaValidationError

from models.report import AnalyzeReportRequest, ReportResponse

logger = logging.getLogger(__name__)

_report_list = TypeAdapter(List[ReportResponse])


class ApiError(Exception):
    """Non-2xx response; carries the server's message"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class ContractValidationError(Exception):
    """Response body does not match the shared contract"""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return response.reason_phrase


class ReportClient:
    """
    Report queries and the create mutation over an httpx.AsyncClient whose
    base_url points at the API root (".../api") and carries the session.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self.http = http_client
        self._list_cache: Optional[List[ReportResponse]] = None

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self.http.request(method, path, **kwargs)
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        return response

    async def list_reports(self, refresh: bool = False) -> List[ReportResponse]:
        if self._list_cache is not None and not refresh:
            return self._list_cache

        response = await self._request("GET", "/reports")
        try:
            reports = _report_list.validate_python(response.json())
        except (SchemaValidationError, ValueError) as e:
            raise ContractValidationError(f"GET /reports: {e}")
        self._list_cache = reports
        return reports

    async def get_report(self, report_id: int) -> Optional[ReportResponse]:
        """The report, or None when the server answers 404"""
        response = await self.http.get(f"/reports/{report_id}")
        if response.status_code == 404:
            return None
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        try:
            return ReportResponse.model_validate(response.json())
        except (SchemaValidationError, ValueError) as e:
            raise ContractValidationError(f"GET /reports/{report_id}: {e}")

    async def create_report(self, address: str, business_type: str) -> ReportResponse:
        # Raises pydantic.ValidationError before any request is sent
        body = AnalyzeReportRequest(address=address, business_type=business_type)

        response = await self._request(
            "POST", "/reports/analyze", json=body.model_dump(by_alias=True)
        )
        try:
            report = ReportResponse.model_validate(response.json())
        except (SchemaValidationError, ValueError) as e:
            raise ContractValidationError(f"POST /reports/analyze: {e}")

        self.invalidate()
        logger.debug(f"Created report {report.id}")
        return report

    def invalidate(self):
        self._list_cache = None
