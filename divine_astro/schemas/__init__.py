from .charts import (
    ChartInput,
    Place,
    ComputeRequest,
    ComputeResponse,
    BodyPosition,
    BodyResult,
    SignPosition,
    Angles,
    HouseCusp,
    MetaOut,
)

from .astro import AstroRequest, AstroResponse, GeoLocationOut
