"""
Table board state.

Maps session records from the remote session store onto the club's fixed
set of pool tables.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_TABLE_COUNT = 3

# .NET writes up to 7 fractional digits, fromisoformat before 3.11 wants 3 or 6
_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from the API, keeping None and blanks as None.

    Fractional seconds of any length are cut or padded to microseconds.

    Raises:
        TypeError: If the value is not a string
        ValueError: If the value is not valid ISO-8601
    """
    if not value:
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    # fromisoformat only accepts a trailing Z from 3.11 on
    value = value.replace("Z", "+00:00")
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(value)


def _parse_record_timestamp(record: Dict[str, Any], key: str) -> Optional[datetime]:
    try:
        return parse_timestamp(record.get(key))
    except (TypeError, ValueError):
        logger.warning(
            "Ignoring unparseable %s %r for table %s",
            key, record.get(key), record.get("tableId")
        )
        return None


@dataclass(frozen=True)
class TableSession:
    """A session record as reported by the remote session store."""
    table_id: Optional[int]
    player_name: str
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    total_amount: Optional[float]

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "TableSession":
        """Build a session from an API record.

        A timestamp that cannot be parsed is logged and treated as missing.

        Args:
            record: JSON object with tableId, playerName, startTime,
                endTime and totalAmount keys (all optional)

        Returns:
            Parsed TableSession
        """
        table_id = record.get("tableId")
        total_amount = record.get("totalAmount")
        return cls(
            table_id=int(table_id) if table_id else None,
            player_name=record.get("playerName") or "",
            start_time=_parse_record_timestamp(record, "startTime"),
            end_time=_parse_record_timestamp(record, "endTime"),
            total_amount=float(total_amount) if total_amount else None
        )


@dataclass(frozen=True)
class PoolTable:
    """A pool table as shown on the front desk board."""
    id: int
    occupied: bool
    occupant: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    bill: Optional[float] = None

    @classmethod
    def available(cls, table_id: int) -> "PoolTable":
        """A free table."""
        return cls(id=table_id, occupied=False)


def build_table_board(
    sessions: List[TableSession],
    table_count: int = DEFAULT_TABLE_COUNT
) -> List[PoolTable]:
    """Lay active sessions out over tables 1..table_count.

    A session without a table id takes its 1-based position in the list.
    Sessions for tables outside the board are ignored; when two sessions
    claim the same table the first one wins.

    Args:
        sessions: Active sessions from the remote store
        table_count: Number of tables in the club

    Returns:
        One PoolTable per table id, in id order
    """
    occupied: Dict[int, PoolTable] = {}
    for index, session in enumerate(sessions):
        table_id = session.table_id or index + 1
        if table_id in occupied:
            continue
        occupied[table_id] = PoolTable(
            id=table_id,
            occupied=True,
            occupant=session.player_name,
            start_time=session.start_time,
            end_time=session.end_time,
            bill=session.total_amount
        )

    return [
        occupied.get(table_id, PoolTable.available(table_id))
        for table_id in range(1, table_count + 1)
    ]
