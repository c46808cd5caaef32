import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from ..db import unit_of_work
from ..models.training import RoleTraining, TrainingItem, TrainingRole
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_VALIDITY_YEARS = 2

# (training name, validity in years)
DEFAULT_TRAINING_ITEMS = [
    ("Site Specific Safety Orientation / COC", 2),
    ("Environmental Orientation", 2),
    ("Defensive & Off-Road Driving / JMP", 2),
    ("Emergency Response Procedure", 2),
    ("Fire Prevention & Protection", 2),
    ("Hand & Power Tools / Electrical Safety", 2),
    ("Personal Protective Equipment (PPE)", 2),
    ("Heat Stress Awareness", 1),
    ("Hazardous Chemicals / RPE", 1),
    ("Heavy Equipment Safety", 2),
    ("Work Permit System", 2),
    ("Authorized Gas Tester", 2),
    ("Confined Space Entry / Rescue", 2),
    ("Hazard Recognition", 2),
    ("Safe Rigging & Lifting", 2),
    ("LOTO - Isolation", 2),
    ("Excavation Safety", 2),
    ("Work at Height & Ladders Safety", 2),
    ("Incident Reporting & Investigation", 2),
    ("Housekeeping", 2),
    ("Job Safety Analysis & Pre Job Briefing", 2),
    ("Materials / Manual Handling", 2),
    ("Line of Fire", 2),
    ("Compressed Gas Cylinders", 2),
    ("First Aid (FA) & Basic Life Support (BLS)", 2),
    ("Fire Watch Responsibilities", 2),
]

DEFAULT_ROLE_TRAININGS = {
    "Office Workers": [
        "Site Specific Safety Orientation / COC", "Environmental Orientation",
        "Emergency Response Procedure", "Personal Protective Equipment (PPE)",
        "Housekeeping", "Job Safety Analysis & Pre Job Briefing",
        "Materials / Manual Handling", "Line of Fire",
    ],
    "Riggers": [
        "Site Specific Safety Orientation / COC", "Environmental Orientation",
        "Emergency Response Procedure", "Fire Prevention & Protection",
        "Hand & Power Tools / Electrical Safety", "Personal Protective Equipment (PPE)",
        "Heat Stress Awareness", "Heavy Equipment Safety", "Work Permit System",
        "Hazard Recognition", "Safe Rigging & Lifting", "Work at Height & Ladders Safety",
        "Job Safety Analysis & Pre Job Briefing",
    ],
    "Safety Officers": [
        "Site Specific Safety Orientation / COC", "Environmental Orientation",
        "Emergency Response Procedure", "Fire Prevention & Protection",
        "Hand & Power Tools / Electrical Safety", "Personal Protective Equipment (PPE)",
        "Heat Stress Awareness", "Hazardous Chemicals / RPE",
        "Incident Reporting & Investigation", "Housekeeping",
        "Job Safety Analysis & Pre Job Briefing", "Line of Fire",
        "Fire Watch Responsibilities",
    ],
}


def seed_training_matrix(db: Session) -> int:
    """Seed the default trainings and role requirements; returns the role count."""
    if db.query(TrainingRole).count():
        return 0
    with unit_of_work(db):
        items = {}
        for name, validity in DEFAULT_TRAINING_ITEMS:
            existing = db.query(TrainingItem).filter(TrainingItem.name == name).first()
            items[name] = existing or TrainingItem(name=name, validity_years=validity)
            db.add(items[name])
        for role_name, trainings in DEFAULT_ROLE_TRAININGS.items():
            role = TrainingRole(name=role_name)
            role.assignments = [RoleTraining(training=items[name]) for name in trainings]
            db.add(role)
    logger.info("Seeded training matrix with %s roles", len(DEFAULT_ROLE_TRAININGS))
    return len(DEFAULT_ROLE_TRAININGS)


def role_trainings(db: Session, role_id: int) -> List[TrainingItem]:
    """Trainings required by a role, by name."""
    return (
        db.query(TrainingItem)
        .join(RoleTraining, RoleTraining.training_id == TrainingItem.id)
        .filter(RoleTraining.role_id == role_id)
        .order_by(TrainingItem.name)
        .all()
    )


def role_assignment_grid(db: Session, role_id: int) -> List[dict]:
    """Every training with whether ``role_id`` requires it."""
    assigned = {
        training_id
        for (training_id,) in db.query(RoleTraining.training_id).filter(RoleTraining.role_id == role_id)
    }
    return [
        {
            "id": item.id,
            "name": item.name,
            "validity_years": item.validity_years,
            "assigned": item.id in assigned,
        }
        for item in db.query(TrainingItem).order_by(TrainingItem.name).all()
    ]


def set_role_trainings(db: Session, role_id: int, training_ids: Iterable[int]) -> int:
    """Replace a role's required trainings; returns how many are now assigned."""
    role = db.query(TrainingRole).filter(TrainingRole.id == role_id).first()
    if role is None:
        raise NotFoundError("Training role not found")

    wanted = set(training_ids)
    items = db.query(TrainingItem).filter(TrainingItem.id.in_(wanted)).all() if wanted else []
    unknown = wanted - {item.id for item in items}
    if unknown:
        raise ValidationError(f"Unknown training ids: {sorted(unknown)}")

    current = {assignment.training_id: assignment for assignment in role.assignments}
    with unit_of_work(db):
        # Keep surviving rows; the (role, training) pair is unique
        for training_id, assignment in current.items():
            if training_id not in wanted:
                role.assignments.remove(assignment)
        for item in items:
            if item.id not in current:
                role.assignments.append(RoleTraining(training_id=item.id))
    logger.info("Role %s now requires %s trainings", role.name, len(items))
    return len(items)
