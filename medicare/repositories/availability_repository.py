"""Availability repository - Database operations for doctor calendars"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from medicare.models.availability import AvailabilityConfig


class AvailabilityRepository:
    """Repository for availability configuration"""

    @staticmethod
    def get(db: Session, owner_user_id: int) -> Optional[AvailabilityConfig]:
        return db.query(AvailabilityConfig).filter(AvailabilityConfig.owner_user_id == owner_user_id).first()

    @staticmethod
    def create(db: Session, owner_user_id: int, fields: Dict[str, Any]) -> AvailabilityConfig:
        config = AvailabilityConfig(owner_user_id=owner_user_id, **fields)
        db.add(config)
        db.flush()
        return config

    @staticmethod
    def update(db: Session, config: AvailabilityConfig, fields: Dict[str, Any]) -> AvailabilityConfig:
        # JSON columns are only flagged dirty on reassignment, so always assign fresh values
        for key, value in fields.items():
            setattr(config, key, list(value) if isinstance(value, (list, tuple, set)) else value)
        db.flush()
        return config
