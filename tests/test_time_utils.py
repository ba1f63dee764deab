from datetime import date, datetime, timedelta, timezone

from pytest_mock import MockerFixture

from sitedesign.utils.time_utils import TimeUtils


def test_parse() -> None:
    """
    测试解析各种格式的时间
    """
    expected = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)
    assert TimeUtils.parse("2024-03-05T12:00:00Z") == expected
    assert TimeUtils.parse("2024-03-05T12:00:00+00:00") == expected
    assert TimeUtils.parse("2024-03-05T12:00:00") == expected
    assert TimeUtils.parse(expected.timestamp()) == expected
    assert TimeUtils.parse(date(2024, 3, 5)) == datetime(
        2024, 3, 5, tzinfo=timezone.utc
    )


def test_expiry(mocker: MockerFixture) -> None:
    """
    测试过期判断与剩余时间
    """
    now = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)
    mocker.patch.object(TimeUtils, "now", return_value=now)
    assert TimeUtils.after(60) == now + timedelta(seconds=60)
    assert TimeUtils.now_iso() == "2024-03-05T12:00:00+00:00"
    assert not TimeUtils.is_expired("2024-03-05T12:01:00+00:00")
    assert TimeUtils.is_expired("2024-03-05T11:59:59+00:00")
    assert TimeUtils.seconds_until("2024-03-05T12:01:00+00:00") == 60
    assert TimeUtils.seconds_until("2024-03-05T11:00:00+00:00") == 0


def test_format_date() -> None:
    moment = "2024-12-31T23:30:00Z"
    assert TimeUtils.format_date(moment) == "31/12/2024"
    assert TimeUtils.format_date(moment, "short", "Asia/Shanghai") == "01/01/2025"
    assert TimeUtils.format_date(moment, "%d.%m.%Y %H:%M") == "31.12.2024 23:30"
