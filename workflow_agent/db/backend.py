"""HTTP client for the workflow backend that owns orders, stages and users."""
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from workflow_agent.config import BACKEND_TIMEOUT, WORKFLOW_API_BASE_URL

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when the workflow backend is unreachable or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in (401, 403)


class WorkflowBackendClient:
    """Backend client bound to one caller credential.

    A new instance is created for every request; it holds no state beyond the
    credential it was created with.
    """

    def __init__(
        self,
        credential: str,
        base_url: str = WORKFLOW_API_BASE_URL,
        timeout: float = BACKEND_TIMEOUT,
    ):
        self.credential = credential
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Any] = None,
    ) -> Any:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Basic {self.credential}",
        }
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(
                method,
                url,
                headers=headers,
                json=json_body,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BackendError(f"Workflow backend unreachable: {e}") from e

        if not response.ok:
            message = response.reason or "Request failed"
            try:
                payload = response.json()
                if isinstance(payload, dict) and payload.get("message"):
                    message = payload["message"]
            except ValueError:
                pass
            logger.debug("Backend %s %s failed with %s: %s", method, path, response.status_code, message)
            raise BackendError(
                f"Backend responded with {response.status_code}: {message}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Backend returned invalid JSON for {method} {path}") from e

    # ---- profile ----

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    # ---- orders ----

    def list_orders(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/orders") or []

    def get_order(self, order_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/orders/{order_id}")

    def create_order(
        self,
        order_number: str,
        priority: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/api/orders",
            json_body={"orderNumber": order_number, "priority": priority, "notes": notes},
        )

    def update_priority(self, order_id: int, priority: int) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/orders/{order_id}/priority", json_body={"priority": priority})

    # ---- operator ----

    def operator_queue(self, stage: str, states: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        params: List[tuple] = [("stage", stage)]
        params.extend(("states", state) for state in states or [])
        return self._request("GET", "/api/operator/queue", params=params) or []

    def claim_stage(self, order_id: int, stage: str, assignee: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/api/operator/orders/{order_id}/stages/{stage}/claim",
            json_body={"assignee": assignee},
        )

    def complete_stage(
        self,
        order_id: int,
        stage: str,
        assignee: str,
        service_time_minutes: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/api/operator/orders/{order_id}/stages/{stage}/complete",
            json_body={"assignee": assignee, "serviceTimeMinutes": service_time_minutes, "notes": notes},
        )

    def flag_exception(
        self,
        order_id: int,
        stage: str,
        assignee: str,
        exception_reason: str,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/api/operator/orders/{order_id}/stages/{stage}/flag-exception",
            json_body={"assignee": assignee, "exceptionReason": exception_reason, "notes": notes},
        )

    def update_checklist_item(self, order_id: int, stage: str, task_id: str, completed: bool) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"/api/operator/orders/{order_id}/stages/{stage}/checklist",
            json_body={"taskId": task_id, "completed": completed},
        )

    # ---- supervisor ----

    def wip_summary(self) -> Dict[str, Any]:
        return self._request("GET", "/api/supervisor/wip")

    def approve_skip(self, order_id: int, stage: str, approver: str, notes: Optional[str] = None) -> Any:
        return self._request(
            "POST",
            f"/api/supervisor/orders/{order_id}/stages/{stage}/approve-skip",
            json_body={"approver": approver, "notes": notes},
        )

    def request_rework(self, order_id: int, stage: str, approver: str, notes: Optional[str] = None) -> Any:
        return self._request(
            "POST",
            f"/api/supervisor/orders/{order_id}/stages/{stage}/request-rework",
            json_body={"approver": approver, "notes": notes},
        )
