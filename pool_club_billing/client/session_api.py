"""
Client for the remote table session store.

Thin wrapper over the club's HTTP API. All failures are loud: they are
logged and re-raised as SessionApiError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from ..core.billing import BillBreakdown

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://tgc-sports-api.runasp.net"
DEFAULT_TIMEOUT_SECONDS = 10.0

_API_PREFIX = "/api/BilliardTable"


class SessionApiError(Exception):
    """Raised when the session store cannot be reached or rejects a call."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class StaffIdentity:
    """Signed-in staff member recorded against session changes."""
    name: str = ""
    user_id: str = ""


class SessionApiClient:
    """HTTP client for starting, ending and listing table sessions."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None
    ):
        """Initialize the client.

        Args:
            base_url: Root URL of the session store
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required and cannot be empty")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def list_active_sessions(self) -> List[Dict[str, Any]]:
        """Sessions currently running on any table."""
        return self._request("GET", "GetAllBilliardTableActiveSessions", "fetching data")

    def list_all_sessions(self) -> List[Dict[str, Any]]:
        """Every recorded session, past and active."""
        return self._request("GET", "GetAllBilliardTableSessions", "fetching data")

    def start_session(
        self,
        table_id: int,
        player_name: str,
        staff: StaffIdentity
    ) -> Any:
        """Start a game on a table."""
        payload = {
            "tableId": table_id,
            "playerName": player_name,
            "gameStartedStaffName": staff.name,
            "createdBy": staff.user_id,
        }
        return self._request("POST", "StartGame", "starting game", payload)

    def end_session(
        self,
        table_id: int,
        breakdown: BillBreakdown,
        staff: StaffIdentity
    ) -> Any:
        """End the game on a table and record its final bill.

        Args:
            table_id: Table whose game is ending
            breakdown: Bill computed at the moment the game ended
            staff: Staff member closing the game

        Returns:
            Decoded JSON response

        Raises:
            SessionApiError: If the request fails or is rejected
        """
        payload = {
            "tableId": table_id,
            "totaltimeinminutes": breakdown.total_minutes,
            "baseAmount": breakdown.initial_charge,
            "additionalAmount": breakdown.additional_charge,
            "totalAmount": breakdown.total_bill,
            "gameEndedStaffName": staff.name,
            "updatedBy": staff.user_id,
        }
        return self._request("POST", "EndGame", "ending game", payload)

    def get_earnings_summary(self) -> Dict[str, Any]:
        """Earnings totals as reported by the session store."""
        return self._request("GET", "GetEarningsSummary", "fetching data")

    def _request(
        self,
        method: str,
        endpoint: str,
        action: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> Any:
        url = f"{self.base_url}{_API_PREFIX}/{endpoint}"
        try:
            response = self.session.request(
                method, url, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error("Error %s from %s: %s", action, url, e)
            raise SessionApiError(f"Error {action}: {e}") from e

        if not response.ok:
            logger.error(
                "Error %s from %s: %s %s",
                action, url, response.status_code, response.reason
            )
            raise SessionApiError(
                f"Error {action}: {response.reason}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error("Invalid JSON %s from %s: %s", action, url, e)
            raise SessionApiError(f"Invalid response while {action}") from e
