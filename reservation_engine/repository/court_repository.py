from __future__ import annotations

from typing import Iterable, Mapping, Optional

from sqlalchemy.orm import Session, selectinload

from reservation_engine.models.court import Court, CourtOperatingHours


def get_court(db: Session, court_id: int) -> Optional[Court]:
    return (
        db.query(Court)
        .options(selectinload(Court.operating_hours))
        .filter(Court.id_court == court_id)
        .first()
    )


def create_court(
    db: Session,
    court_data: Mapping[str, object],
    operating_hours: Iterable[Mapping[str, object]] = (),
) -> Court:
    """Persist a court with its weekly hours (facility onboarding, seeding)."""

    court = Court(**court_data)
    court.operating_hours = [CourtOperatingHours(**hours) for hours in operating_hours]
    db.add(court)
    db.commit()
    db.refresh(court)
    return court


__all__ = ["create_court", "get_court"]
