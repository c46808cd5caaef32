import asyncio
import logging

from sqlalchemy.orm import Session

from ..db import SessionLocal, unit_of_work
from ..models.area import Area
from ..models.observation import Observation

logger = logging.getLogger(__name__)

DEFAULT_AREAS = [
    "Hydro-test Area", "Fabrication Yard", "Pipe Yard", "Welding Shop",
    "Storage Area", "Office Area", "Workshop", "Loading Area",
    "Parking Area", "Main Gate", "Camp Area", "Warehouse",
]


def _add_missing(db: Session, names) -> int:
    existing = {name for (name,) in db.query(Area.name).all()}
    added = 0
    for name in names:
        if name and name not in existing:
            db.add(Area(name=name))
            existing.add(name)
            added += 1
    return added


def seed_areas(db: Session) -> int:
    if db.query(Area).count():
        return 0
    with unit_of_work(db):
        added = _add_missing(db, DEFAULT_AREAS)
    return added


def sync_areas_from_observations(db: Session) -> int:
    """Add every distinct observation area that is not yet in the lookup table."""
    observed = [
        area.strip()
        for (area,) in db.query(Observation.area).distinct().all()
        if area and area.strip()
    ]
    with unit_of_work(db):
        added = _add_missing(db, observed)
    if added:
        logger.info("Added %s new areas from observations", added)
    return added


def run_area_sync():
    """One-shot startup reconciliation; failures are logged, never retried."""
    db = SessionLocal()
    try:
        sync_areas_from_observations(db)
    except Exception:
        logger.exception("Area sync from observations failed")
    finally:
        db.close()


async def sync_areas_later(delay: float):
    """Sleep, then run the area sync on a worker thread."""
    await asyncio.sleep(delay)
    await asyncio.to_thread(run_area_sync)
