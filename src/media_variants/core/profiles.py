"""The fixed variant catalog."""

from typing import AbstractSet, Dict, List

from .models import FitMode, OutputFormat, VariantProfile

JPEG_QUALITY = 85
WEBP_QUALITY = 90
WEBP_METHOD = 6
CACHE_CONTROL = "public, max-age=31536000, immutable"
VARIANTS_PREFIX = "variants"

SIZE_PROFILES: List[VariantProfile] = [
    VariantProfile(name="thumbnail", max_width=150, max_height=150, fit_mode=FitMode.COVER),
    VariantProfile(name="small", max_width=400, fit_mode=FitMode.INSIDE),
    VariantProfile(name="medium", max_width=800, fit_mode=FitMode.INSIDE),
    VariantProfile(name="large", max_width=1200, fit_mode=FitMode.INSIDE),
    VariantProfile(name="xlarge", max_width=1920, fit_mode=FitMode.INSIDE),
]

WEBP_PROFILE = VariantProfile(name="webp", output_format=OutputFormat.WEBP)

VARIANT_PROFILES: List[VariantProfile] = SIZE_PROFILES + [WEBP_PROFILE]

PROFILES_BY_NAME: Dict[str, VariantProfile] = {p.name: p for p in VARIANT_PROFILES}

PROFILE_NAMES = frozenset(PROFILES_BY_NAME)

# Probed by the existence checker as a stand-in for the whole set.
SENTINEL_PROFILE = "thumbnail"


def variant_key(profile: VariantProfile, base_filename: str) -> str:
    """Deterministic object key: ``variants/{profile}/{base}.{ext}``."""
    return f"{VARIANTS_PREFIX}/{profile.name}/{base_filename}.{profile.extension}"


def is_complete(variants: Dict[str, str], names: AbstractSet[str] = PROFILE_NAMES) -> bool:
    return set(names).issubset(variants)
