from datetime import date, datetime, timedelta, timezone

import pytz

DATE_PRESETS: dict[str, str] = {
    "short": "%d/%m/%Y",
    "long": "%A, %d %B %Y",
    "time": "%H:%M:%S",
    "datetime": "%d/%m/%Y %H:%M:%S",
}
"""date 过滤器支持的预设格式"""

DATE_TOKENS = ("%Y", "%m", "%d", "%H", "%M", "%S")
"""自定义格式中会被替换的标记"""


class TimeUtils:
    DEFAULT_TIMEZONE = pytz.utc

    @classmethod
    def now(cls) -> datetime:
        """当前 UTC 时间"""
        return datetime.now(timezone.utc)

    @classmethod
    def now_iso(cls) -> str:
        """当前 UTC 时间的 ISO 字符串"""
        return cls.now().isoformat()

    @classmethod
    def after(cls, seconds: float) -> datetime:
        """若干秒之后的 UTC 时间"""
        return cls.now() + timedelta(seconds=seconds)

    @classmethod
    def parse(cls, value: str | datetime | date | float) -> datetime:
        """将 ISO 字符串、时间戳（秒）或日期对象解析为带时区的时间

        参数:
            value: 待解析的值

        返回:
            datetime: 带时区的时间，未携带时区的值视为 UTC
        """
        if isinstance(value, datetime):
            result = value
        elif isinstance(value, date):
            result = datetime.combine(value, datetime.min.time())
        elif isinstance(value, int | float):
            result = datetime.fromtimestamp(value, timezone.utc)
        else:
            text = value.strip()
            if text.endswith("Z"):
                text = f"{text[:-1]}+00:00"
            result = datetime.fromisoformat(text)
        if result.tzinfo is None:
            result = result.replace(tzinfo=timezone.utc)
        return result

    @classmethod
    def is_expired(cls, expires_at: str | datetime) -> bool:
        """是否已过期

        参数:
            expires_at: 过期时间

        返回:
            bool: 过期时间早于当前时间时返回 True
        """
        return cls.parse(expires_at) < cls.now()

    @classmethod
    def seconds_until(cls, expires_at: str | datetime) -> int:
        """距离过期还剩多少秒，已过期返回 0"""
        delta = cls.parse(expires_at) - cls.now()
        return max(0, int(delta.total_seconds()))

    @classmethod
    def format_date(
        cls,
        value: str | datetime | date | float,
        fmt: str = "short",
        tz: str | None = None,
    ) -> str:
        """格式化日期

        参数:
            value: 日期值
            fmt: 预设名称 (short/long/time/datetime)，或包含
                %Y %m %d %H %M %S 标记的自定义格式
            tz: 时区名称，为 None 时使用默认时区

        返回:
            str: 格式化后的字符串
        """
        moment = cls.parse(value).astimezone(
            pytz.timezone(tz) if tz else cls.DEFAULT_TIMEZONE
        )
        if preset := DATE_PRESETS.get(fmt):
            return moment.strftime(preset)
        result = fmt
        for token in DATE_TOKENS:
            result = result.replace(token, moment.strftime(token))
        return result
