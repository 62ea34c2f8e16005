"""Known regions and spoken-name matching."""

from typing import Iterable, Optional

from .models import Region
from .normalizer import normalize

REGIONS: tuple[Region, ...] = (
    Region("Andhra Pradesh", "AP"),
    Region("Arunachal Pradesh", "AR"),
    Region("Assam", "AS"),
    Region("Bihar", "BR"),
    Region("Chhattisgarh", "CG"),
    Region("Goa", "GA"),
    Region("Gujarat", "GJ"),
    Region("Haryana", "HR"),
    Region("Himachal Pradesh", "HP"),
    Region("Jharkhand", "JH"),
    Region("Karnataka", "KA"),
    Region("Kerala", "KL"),
    Region("Madhya Pradesh", "MP"),
    Region("Maharashtra", "MH"),
    Region("Manipur", "MN"),
    Region("Meghalaya", "ML"),
    Region("Mizoram", "MZ"),
    Region("Nagaland", "NL"),
    Region("Odisha", "OR"),
    Region("Punjab", "PB"),
    Region("Rajasthan", "RJ"),
    Region("Sikkim", "SK"),
    Region("Tamil Nadu", "TN"),
    Region("Telangana", "TG"),
    Region("Tripura", "TR"),
    Region("Uttar Pradesh", "UP"),
    Region("Uttarakhand", "UK"),
    Region("West Bengal", "WB"),
    Region("Delhi", "DL"),
    Region("Jammu & Kashmir", "JK"),
    Region("Ladakh", "LA"),
    Region("Puducherry", "PY"),
)

# Spoken forms that normalization alone cannot reach, keyed by region code.
SPOKEN_ALIASES = {
    "JK": ("jammu and kashmir",),
    "OR": ("orissa",),
    "PY": ("pondicherry",),
    "UK": ("uttaranchal",),
}


def regions_for(names: Optional[Iterable[str]]) -> list[Region]:
    """Restrict the region table to `names`; None or "ALL" keeps every region."""
    if names is None:
        return list(REGIONS)
    wanted = {normalize(name) for name in names}
    if "all" in wanted:
        return list(REGIONS)
    return [
        region for region in REGIONS
        if normalize(region.name) in wanted or normalize(region.code) in wanted
    ]


def _spoken_names(region: Region) -> tuple[str, ...]:
    return (normalize(region.name),) + SPOKEN_ALIASES.get(region.code, ())


def match_region(text: str, regions: Iterable[Region] = REGIONS) -> Optional[Region]:
    """Resolve a spoken region: exact name, then substring, then code."""
    spoken = normalize(text)
    if not spoken:
        return None
    candidates = list(regions)

    for region in candidates:
        if spoken in _spoken_names(region):
            return region

    for region in candidates:
        if any(name in spoken or spoken in name for name in _spoken_names(region)):
            return region

    for region in candidates:
        if spoken == normalize(region.code):
            return region

    return None
