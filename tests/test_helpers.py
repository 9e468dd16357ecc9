import base64
import datetime as dt

import pytest

from focal.core.exceptions import ValidationError
from focal.utils.helpers import (
    decode_image_data_uri,
    describe_hours,
    hours_until,
    month_bounds,
    parse_local_date,
)


def test_decode_image_data_uri_normalises_jpg():
    payload = base64.b64encode(b"\xff\xd8\xff").decode()
    mime, data = decode_image_data_uri(f"data:image/jpg;base64,{payload}")
    assert mime == "image/jpeg"
    assert data == b"\xff\xd8\xff"


@pytest.mark.parametrize(
    "value",
    ["", "hello", "data:text/plain;base64,aGk=", "data:image/png;base64,***", "data:image/png,raw"],
)
def test_decode_image_data_uri_rejects(value):
    with pytest.raises(ValidationError):
        decode_image_data_uri(value)


def test_parse_local_date():
    assert parse_local_date("2024-02-29") == dt.date(2024, 2, 29)
    assert parse_local_date("2024-02-29T23:10:00.000Z") == dt.date(2024, 2, 29)
    assert parse_local_date("yesterday") is None
    assert parse_local_date(None) is None


def test_month_bounds_year_rollover():
    assert month_bounds(dt.date(2024, 12, 31)) == (dt.date(2024, 12, 1), dt.date(2025, 1, 1))
    assert month_bounds(dt.date(2024, 2, 10)) == (dt.date(2024, 2, 1), dt.date(2024, 3, 1))


def test_hours_until_rounds_up():
    assert hours_until(1000 + 3601, 1000) == 2
    assert hours_until(1000, 2000) == 0
    assert describe_hours(1) == "1 hour"
    assert describe_hours(5) == "5 hours"
