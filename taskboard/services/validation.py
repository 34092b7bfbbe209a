"""Input validation helpers shared by the services.

All free text is passed through bleach.clean() to strip HTML tags before it
is checked or stored. Every helper raises ValidationError (a ValueError) so
bad input is rejected before the store is touched.
"""

import math
from datetime import datetime, timezone

import bleach

from taskboard.errors import InvalidPoints, ValidationError


def sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()


def require_text(value, field, max_length=None):
    """Sanitize a required text field; reject empty or over-long values."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string.", field=field)
    cleaned = sanitize(value)
    if not cleaned:
        raise ValidationError(f"{field} is required.", field=field)
    if max_length is not None and len(cleaned) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters.", field=field
        )
    return cleaned


def optional_text(value, field, max_length=None):
    """Sanitize an optional text field. Empty strings become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string.", field=field)
    cleaned = sanitize(value)
    if max_length is not None and len(cleaned) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters.", field=field
        )
    return cleaned or None


def require_int(value, field, minimum=None):
    """Accept a real integer (not a bool, not a float) at or above `minimum`."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer.", field=field)
    if minimum is not None and value < minimum:
        raise ValidationError(
            f"{field} must be at least {minimum}.", field=field
        )
    return value


def require_id(value, field):
    """Accept a non-empty string id; anything else is a ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string id.", field=field)
    return value


def optional_id(value, field):
    if value is None:
        return None
    return require_id(value, field)


def parse_datetime(value, field):
    """Parse an ISO-8601 string (or pass a datetime through). None stays None.

    Naive values are taken to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(
                f"{field} must be an ISO-8601 datetime.", field=field
            ) from None
    else:
        raise ValidationError(
            f"{field} must be an ISO-8601 datetime.", field=field
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def calculate_task_points(story_points):
    """Story points convert 1:1 into awarded points."""
    if (
        isinstance(story_points, bool)
        or not isinstance(story_points, int)
        or story_points < 0
    ):
        raise InvalidPoints(
            f"Story points must be a non-negative integer, got {story_points!r}."
        )
    return story_points


def validate_manual_award(points_earned):
    """Return the award as an int if it is finite, whole and > 0.

    Floats with no fractional part (e.g. 100.0) are accepted since JSON
    clients do not always distinguish them.

    Raises:
        InvalidPoints: For bools, non-numbers, NaN/inf, fractions, and
            values <= 0.
    """
    if isinstance(points_earned, bool) or not isinstance(
        points_earned, (int, float)
    ):
        raise InvalidPoints("points_earned must be a number.")
    if isinstance(points_earned, float):
        if not math.isfinite(points_earned):
            raise InvalidPoints("points_earned must be a finite number.")
        if not points_earned.is_integer():
            raise InvalidPoints("points_earned must be a whole number.")
        points_earned = int(points_earned)
    if points_earned <= 0:
        raise InvalidPoints("points_earned must be greater than 0.")
    return points_earned
