"""
Front desk operations.

Glue between the table board, the billing calculator and the session store.
Ending a game is split in two: preview_end computes the bill for staff to
confirm, finalize_end records it.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional

from .billing import BillBreakdown, compute_bill
from .rates import DEFAULT_RATE_POLICY, RatePolicy
from .tables import DEFAULT_TABLE_COUNT, PoolTable, TableSession, build_table_board
from ..client.session_api import SessionApiClient, StaffIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndGamePreview:
    """A table with its end time captured and its bill computed."""
    table: PoolTable
    breakdown: BillBreakdown


class FrontDesk:
    """Start and end games on the club's tables."""

    def __init__(
        self,
        client: SessionApiClient,
        rate: RatePolicy = DEFAULT_RATE_POLICY,
        table_count: int = DEFAULT_TABLE_COUNT
    ):
        if table_count <= 0:
            raise ValueError("table_count must be > 0")
        self.client = client
        self.rate = rate
        self.table_count = table_count

    def refresh(self) -> List[PoolTable]:
        """Fetch active sessions and lay them out over the tables."""
        records = self.client.list_active_sessions() or []
        sessions = [TableSession.from_api(record) for record in records]
        return build_table_board(sessions, self.table_count)

    def get_table(self, table_id: int) -> PoolTable:
        """Current state of a single table.

        Raises:
            ValueError: If the table does not exist
        """
        for table in self.refresh():
            if table.id == table_id:
                return table
        raise ValueError(f"Unknown table: {table_id}")

    def start_game(self, table_id: int, player_name: str, staff: StaffIdentity):
        """Start a game for a player on a free table.

        Raises:
            ValueError: If the player name is blank, or the table is unknown
                or already occupied
            SessionApiError: If the session store rejects the call
        """
        if not player_name or not player_name.strip():
            raise ValueError("Please enter player's name to continue")

        table = self.get_table(table_id)
        if table.occupied:
            raise ValueError(f"Table {table_id} is already occupied by {table.occupant}")

        result = self.client.start_session(table_id, player_name.strip(), staff)
        logger.info("Game started for table %d (%s)", table_id, player_name.strip())
        return result

    def preview_end(self, table_id: int, now: Optional[datetime] = None) -> EndGamePreview:
        """Capture the end time for a table and compute its bill.

        Nothing is written to the session store.

        Args:
            table_id: Occupied table to end
            now: End time, defaults to the current time in the start
                time's timezone

        Raises:
            ValueError: If the table is unknown or not occupied
        """
        table = self.get_table(table_id)
        if not table.occupied:
            raise ValueError(f"Table {table_id} has no game in progress")

        if now is None:
            tz = table.start_time.tzinfo if table.start_time else None
            now = datetime.now(tz)

        ended = replace(table, end_time=now)
        breakdown = compute_bill(ended.start_time, ended.end_time, self.rate)
        return EndGamePreview(table=ended, breakdown=breakdown)

    def finalize_end(self, preview: EndGamePreview, staff: StaffIdentity):
        """Record the end of a previewed game with its bill.

        Raises:
            SessionApiError: If the session store rejects the call
        """
        result = self.client.end_session(preview.table.id, preview.breakdown, staff)
        logger.info(
            "Game ended for table %d: %d minutes, total %.2f",
            preview.table.id, preview.breakdown.total_minutes, preview.breakdown.total_bill
        )
        return result
