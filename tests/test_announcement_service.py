from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import ValidationError
from app.models.announcement import AnnouncementCreate
from app.services.announcement_service import _validated


def test_validated_strips_text_and_normalises_to_utc() -> None:
    plus_two = timezone(timedelta(hours=2))
    data = AnnouncementCreate(
        start_date=datetime(2026, 8, 1, 8, 0, tzinfo=plus_two),
        end_date=datetime(2026, 8, 15, 18, 0, tzinfo=plus_two),
        description="  Godišnji odmor  ",
    )

    clean = _validated(data)

    assert clean.description == "Godišnji odmor"
    assert clean.start_date == datetime(2026, 8, 1, 6, 0)
    assert clean.end_date == datetime(2026, 8, 15, 16, 0)


@pytest.mark.parametrize(
    ("description", "end", "reason"),
    [
        ("   ", datetime(2026, 8, 2), "missing_field"),
        ("Zatvoreno", datetime(2026, 8, 1), "malformed_time"),
        ("Zatvoreno", datetime(2026, 7, 31), "malformed_time"),
    ],
)
def test_validated_rejects_bad_input(description, end, reason) -> None:
    data = AnnouncementCreate(start_date=datetime(2026, 8, 1), end_date=end, description=description)

    with pytest.raises(ValidationError) as exc:
        _validated(data)
    assert exc.value.reason == reason
