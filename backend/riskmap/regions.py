from __future__ import annotations

from .errors import UnknownRegionError
from .models import ALL_REGIONS, Region


def _box_ring(lat_min: float, lng_min: float, lat_max: float, lng_max: float) -> tuple[tuple[float, float], ...]:
    return (
        (lat_min, lng_min),
        (lat_max, lng_min),
        (lat_max, lng_max),
        (lat_min, lng_max),
        (lat_min, lng_min),
    )


# Tehran municipality regions. Rings are [lat, lng] and explicitly closed.
REGIONS: dict[str, Region] = {
    ALL_REGIONS: Region(
        id=ALL_REGIONS,
        display_name="همه مناطق",
        bounds=((35.55, 51.20), (35.85, 51.65)),
        polygon=None,
        center=(35.6892, 51.3890),
    ),
    "downtown": Region(
        id="downtown",
        display_name="منطقه ۱۲ (مرکز شهر)",
        bounds=((35.67, 51.35), (35.71, 51.43)),
        polygon=_box_ring(35.67, 51.35, 35.71, 51.43),
        center=(35.6892, 51.3890),
    ),
    "north": Region(
        id="north",
        display_name="منطقه ۱ (شمال)",
        bounds=((35.78, 51.38), (35.85, 51.50)),
        polygon=_box_ring(35.78, 51.38, 35.85, 51.50),
        center=(35.8150, 51.4400),
    ),
    "south": Region(
        id="south",
        display_name="منطقه ۲۰ (جنوب)",
        bounds=((35.55, 51.30), (35.62, 51.45)),
        polygon=_box_ring(35.55, 51.30, 35.62, 51.45),
        center=(35.5850, 51.3750),
    ),
    "east": Region(
        id="east",
        display_name="منطقه ۸ (شرق)",
        bounds=((35.70, 51.45), (35.78, 51.55)),
        polygon=_box_ring(35.70, 51.45, 35.78, 51.55),
        center=(35.7400, 51.5000),
    ),
    "west": Region(
        id="west",
        display_name="منطقه ۹ (غرب)",
        bounds=((35.65, 51.20), (35.72, 51.32)),
        polygon=_box_ring(35.65, 51.20, 35.72, 51.32),
        center=(35.6850, 51.2600),
    ),
}


def get_region(region_id: str, regions: dict[str, Region] | None = None) -> Region:
    catalogue = REGIONS if regions is None else regions
    region = catalogue.get(str(region_id or "").strip())
    if region is None:
        raise UnknownRegionError(str(region_id))
    return region

