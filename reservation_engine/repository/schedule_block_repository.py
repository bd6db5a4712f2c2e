from __future__ import annotations

from datetime import date
from typing import Dict, Optional

from sqlalchemy.orm import Session

from reservation_engine.core.database import unit_of_work
from reservation_engine.models.schedule_block import ScheduleBlock


def get_block(db: Session, block_id: int) -> Optional[ScheduleBlock]:
    return db.query(ScheduleBlock).filter(ScheduleBlock.id_block == block_id).first()


def list_blocks(
    db: Session,
    *,
    court_id: int,
    target_date: date,
    is_blocked: Optional[bool] = None,
) -> list[ScheduleBlock]:
    query = (
        db.query(ScheduleBlock)
        .filter(ScheduleBlock.id_court == court_id)
        .filter(ScheduleBlock.block_date == target_date)
    )
    if is_blocked is not None:
        query = query.filter(ScheduleBlock.is_blocked.is_(is_blocked))

    return query.order_by(ScheduleBlock.start_time, ScheduleBlock.id_block).all()


def add_block(db: Session, block_data: Dict[str, object]) -> ScheduleBlock:
    """Stage a block inside the caller's unit of work."""

    block = ScheduleBlock(**block_data)
    db.add(block)
    db.flush()
    return block


def delete_block(db: Session, block: ScheduleBlock) -> None:
    with unit_of_work(db):
        db.delete(block)


__all__ = ["add_block", "delete_block", "get_block", "list_blocks"]
