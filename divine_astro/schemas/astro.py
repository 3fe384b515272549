from pydantic import BaseModel
from typing import Optional, Union, Dict, Any

from .charts import BodyResult


class AstroRequest(BaseModel):
    year: Optional[int] = None
    month: Optional[int] = None
    date: Optional[int] = None
    hours: Optional[int] = None
    minutes: Optional[int] = None
    seconds: float = 0
    place: Optional[str] = None
    # UTC offset in hours, or an IANA zone name; inferred from the place when omitted
    timezone: Optional[Union[float, str]] = None

    def missing_fields(self) -> bool:
        return (
            not self.year
            or not self.month
            or not self.date
            or self.hours is None
            or self.minutes is None
            or not self.place
        )


class GeoLocationOut(BaseModel):
    lat: float
    lon: float
    display_name: Optional[str] = None


class AstroResponse(BaseModel):
    input: Dict[str, Any]
    location: GeoLocationOut
    timezone: Optional[float] = None
    computed_at: str
    bodies: Dict[str, BodyResult]
    provider: Any
