from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict

from ..services.zodiac import SignBreakdown, format_dms

System = Literal["western", "vedic"]

class Place(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)
    tz: str
    query: Optional[str] = None

class ChartOptions(BaseModel):
    house_system: Optional[str] = None
    ayanamsha: Optional[str] = None

class ChartInput(BaseModel):
    system: System = "western"
    date: str  # YYYY-MM-DD
    time: str  # HH:MM:SS
    time_known: bool = True
    place: Place
    options: Optional[ChartOptions] = None

class ComputeRequest(ChartInput):
    pass

class SignPosition(BaseModel):
    longitude: float
    sign_index: int
    sign_name: str
    degrees: int
    minutes: int
    seconds: float
    dms: str

    @classmethod
    def from_breakdown(cls, b: SignBreakdown, **extra) -> "SignPosition":
        return cls(**b.to_dict(), dms=format_dms(b), **extra)

class BodyPosition(SignPosition):
    house: Optional[int] = None
    retro: Optional[bool] = None
    speed: Optional[float] = None

class BodyResult(BaseModel):
    """Either a position (ok) or the error that prevented computing it."""
    ok: bool
    position: Optional[BodyPosition] = None
    error: Optional[str] = None

class Angles(BaseModel):
    ascendant: SignPosition
    midheaven: SignPosition

class HouseCusp(BaseModel):
    num: int
    cusp: SignPosition

class MetaOut(BaseModel):
    engine: str = "divine-astro"
    engine_version: str
    zodiac: str
    house_system: str
    ayanamsha: Optional[str] = None
    backend: Optional[str] = None
    warnings: Optional[List[str]] = None

class ComputeResponse(BaseModel):
    chart_id: str
    input: ChartInput
    computed_at: str
    meta: MetaOut
    angles: Optional[Angles] = None
    houses: Optional[List[HouseCusp]] = None
    bodies: Dict[str, BodyResult]
