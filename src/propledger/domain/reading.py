"""Meter reading domain service."""

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional

from propledger.database.base import Database
from propledger.domain.entities import UtilityReading
from propledger.domain.errors import ReadingValidationError
from propledger.domain.guards import validate_monotonic_reading, validate_new_reading
from propledger.domain.schemas import parse_create_reading_input
from propledger.logging_config import get_logger

logger = get_logger(__name__)


class UtilityReadingService:
    """Service for recording meter readings and deriving usage."""

    def __init__(self, db: Database):
        """Initialize reading service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_reading(self, data: Mapping[str, Any]) -> UtilityReading:
        """Validate and append a meter reading.

        The new value must be at least the latest reading taken on or before
        its date and at most the earliest reading taken after it, so the
        stored sequence never runs backward. Readings are never updated in
        place.

        Args:
            data: Raw input with ``lease_utility_id``, ``reading_value`` and an
                optional ``reading_date`` (defaults to today)

        Returns:
            The stored reading

        Raises:
            InvalidInputError: If the input is structurally invalid
            ReadingValidationError: If the value is negative, below the
                previous reading or above the next one
        """
        parsed = parse_create_reading_input(data)
        reading_date = parsed.reading_date or date.today()

        previous = self.db.get_previous_reading(parsed.lease_utility_id, on_or_before=reading_date)
        previous_value = previous.reading_value if previous is not None else None

        message = None
        check = validate_new_reading(parsed.reading_value, previous_value)
        if check:
            # A backfilled reading must also stay at or below the one after it
            following = self.db.get_next_reading(parsed.lease_utility_id, after=reading_date)
            if following is not None:
                check = validate_monotonic_reading(following.reading_value, parsed.reading_value)
                if not check:
                    message = (
                        "Reading value is higher than the next reading "
                        f"({following.reading_value} on {following.reading_date})"
                    )
        if not check:
            logger.warning(
                "reading_rejected",
                extra={
                    "lease_utility_id": parsed.lease_utility_id,
                    "reading_value": parsed.reading_value,
                    "previous_value": previous_value,
                    "code": check.error,
                },
            )
            raise ReadingValidationError(check.error, message)

        reading = self.db.create_utility_reading(
            lease_utility_id=parsed.lease_utility_id,
            reading_value=parsed.reading_value,
            reading_date=reading_date,
        )
        logger.info(
            "reading_recorded",
            extra={"lease_utility_id": reading.lease_utility_id, "reading_id": reading.id},
        )
        return reading

    def list_readings(self, lease_utility_id: str) -> list[UtilityReading]:
        """List readings of a lease utility, oldest first."""
        return self.db.list_utility_readings(lease_utility_id)

    def get_usage(self, lease_utility_id: str) -> Optional[Decimal]:
        """Usage between the two latest readings, or None with fewer than two."""
        readings = self.db.list_utility_readings(lease_utility_id)
        if len(readings) < 2:
            return None
        return readings[-1].reading_value - readings[-2].reading_value
