"""Activity analytics schemas."""

from pydantic import BaseModel, ConfigDict

from app.schemas.response_schema import UTCDatetime


class HistogramPoint(BaseModel):
    """Message count for the hour starting at ``hour_start``."""

    model_config = ConfigDict(frozen=True)

    hour_start: UTCDatetime
    count: int


class ActivityHistogram(BaseModel):
    """Trailing-24h hourly activity."""

    model_config = ConfigDict(frozen=True)

    series: list[HistogramPoint]
    total: int
    since: UTCDatetime
    until: UTCDatetime


class SummaryResponse(BaseModel):
    """Natural-language summary of recent activity."""

    model_config = ConfigDict(frozen=True)

    summary: str
