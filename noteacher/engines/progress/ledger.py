"""
Progress ledger - the (user, node) -> status records and their read helpers.
"""

import uuid
from datetime import date, datetime
from typing import Dict, Iterable, Optional, Set

from pydantic import BaseModel, ConfigDict

from noteacher.kernel.models.progress import ProgressStatus
from noteacher.logging_config import get_logger

logger = get_logger(__name__)


class ProgressRecord(BaseModel):
    """One ledger entry (Pydantic view of a user_progress row)."""

    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    node_id: uuid.UUID
    status: ProgressStatus
    updated_at: Optional[datetime] = None


def index_progress(progress: Iterable[ProgressRecord]) -> Dict[uuid.UUID, ProgressStatus]:
    """
    Map node_id -> stored status.

    The store keys the ledger on (user, node), so duplicates only appear if
    that constraint was bypassed. When they do, COMPLETED wins: completion
    is monotonic and must never be lost.
    """
    statuses: Dict[uuid.UUID, ProgressStatus] = {}
    for record in progress:
        status = ProgressStatus(record.status)
        previous = statuses.get(record.node_id)
        if previous is None:
            statuses[record.node_id] = status
            continue
        logger.warning(
            "Duplicate progress records for node",
            extra={"node_id": str(record.node_id), "user_id": str(record.user_id)},
        )
        if status == ProgressStatus.COMPLETED:
            statuses[record.node_id] = status
    return statuses


def completed_node_ids(progress: Iterable[ProgressRecord]) -> Set[uuid.UUID]:
    return {p.node_id for p in progress if ProgressStatus(p.status) == ProgressStatus.COMPLETED}


def calculate_xp(progress: Iterable[ProgressRecord], xp_per_node: int) -> int:
    """XP is a flat award per completed node."""
    return len(completed_node_ids(progress)) * xp_per_node


def calculate_streak(progress: Iterable[ProgressRecord], today: Optional[date] = None) -> int:
    """
    Number of distinct days with ledger activity, at least 1 once any exists.

    Records without a timestamp count as activity today.
    """
    records = list(progress)
    if not records:
        return 0
    today = today or date.today()
    days = {r.updated_at.date() if r.updated_at else today for r in records}
    return max(1, len(days))
