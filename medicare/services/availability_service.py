from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import date
from typing import Any, Dict, Optional
import logging
from medicare.models.availability import AvailabilityConfig, DEFAULT_WORKING_DAYS, DEFAULT_TIME_SLOTS
from medicare.repositories.availability_repository import AvailabilityRepository
from medicare.utils.exceptions import InvalidArgumentError, InvalidStateError
from medicare.utils.validators import DateInput, calendar_day, parse_iso_date, parse_time_label, weekday_index

logger = logging.getLogger(__name__)


class AvailabilityService:
    AVAILABILITY_FIELDS = ("enabled", "working_days", "disabled_dates", "time_slots")

    @staticmethod
    def default_config() -> Dict[str, Any]:
        return {
            "enabled": True,
            "working_days": list(DEFAULT_WORKING_DAYS),
            "disabled_dates": [],
            "time_slots": list(DEFAULT_TIME_SLOTS),
        }

    @staticmethod
    def get_config(db: Session, owner_user_id: int) -> Dict[str, Any]:
        """Stored calendar for a doctor, or the permissive default when none is stored."""
        config = AvailabilityRepository.get(db, owner_user_id)
        if config is None:
            return AvailabilityService.default_config()
        return config.to_dict()

    @staticmethod
    def get_or_create(db: Session, owner_user_id: int) -> AvailabilityConfig:
        config = AvailabilityRepository.get(db, owner_user_id)
        if config is None:
            try:
                config = AvailabilityRepository.create(db, owner_user_id, AvailabilityService.default_config())
                db.commit()
            except IntegrityError:
                db.rollback()
                return AvailabilityRepository.get(db, owner_user_id)
            db.refresh(config)
        return config

    @staticmethod
    def normalize_fields(partial: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(partial) - set(AvailabilityService.AVAILABILITY_FIELDS)
        if unknown:
            raise InvalidArgumentError(f"Unknown availability fields: {', '.join(sorted(unknown))}")

        # An explicit null leaves the stored value alone, same as omitting the key
        partial = {key: value for key, value in partial.items() if value is not None}
        cleaned: Dict[str, Any] = {}

        if "enabled" in partial:
            if not isinstance(partial["enabled"], bool):
                raise InvalidArgumentError("enabled must be true or false")
            cleaned["enabled"] = partial["enabled"]

        if "working_days" in partial:
            days = partial["working_days"]
            if any(isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6 for day in days):
                raise InvalidArgumentError("working_days must contain integers from 0 (Sunday) to 6 (Saturday)")
            cleaned["working_days"] = sorted(set(days))

        if "disabled_dates" in partial:
            dates = {parse_iso_date(value).isoformat() for value in partial["disabled_dates"]}
            cleaned["disabled_dates"] = sorted(dates)

        if "time_slots" in partial:
            slots = []
            for value in partial["time_slots"]:
                label = parse_time_label(value)
                if label not in slots:
                    slots.append(label)
            cleaned["time_slots"] = slots

        return cleaned

    @staticmethod
    def set_availability(db: Session, owner_user_id: int, partial: Dict[str, Any]) -> Dict[str, Any]:
        """
        Shallow-merge the supplied fields into the doctor's stored calendar.

        Keys that are not supplied keep their previous value; a supplied list
        replaces the stored list entirely. Creates the calendar with defaults
        when the doctor has none yet. Returns the full merged configuration.
        """
        cleaned = AvailabilityService.normalize_fields(partial)

        config = AvailabilityRepository.get(db, owner_user_id)
        if config is None:
            merged = AvailabilityService.default_config()
            merged.update(cleaned)
            try:
                config = AvailabilityRepository.create(db, owner_user_id, merged)
                db.commit()
            except IntegrityError:
                # Another request created the calendar first; merge into its row instead
                db.rollback()
                config = AvailabilityRepository.get(db, owner_user_id)
                AvailabilityRepository.update(db, config, cleaned)
                db.commit()
        else:
            AvailabilityRepository.update(db, config, cleaned)
            db.commit()

        db.refresh(config)
        logger.info(f"Availability updated for doctor user {owner_user_id}: {sorted(cleaned)}")
        return config.to_dict()

    @staticmethod
    def check_config(config: Dict[str, Any], day: date) -> None:
        if not config.get("enabled", True):
            raise InvalidStateError("Doctor availability is turned off")

        if day.isoformat() in set(config.get("disabled_dates") or []):
            raise InvalidStateError("Doctor is unavailable on this date")

        working_days = config.get("working_days") or []
        if working_days and weekday_index(day) not in working_days:
            raise InvalidStateError("Doctor is not available on this day: not a working day")

    @staticmethod
    def ensure_bookable(db: Session, owner_user_id: int, when: DateInput, config: Optional[Dict[str, Any]] = None) -> date:
        """Raise InvalidStateError unless the doctor takes bookings on the UTC day of `when`."""
        day = calendar_day(when)
        if config is None:
            config = AvailabilityService.get_config(db, owner_user_id)
        AvailabilityService.check_config(config, day)
        return day
