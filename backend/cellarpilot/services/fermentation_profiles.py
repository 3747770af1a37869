from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TempRange:
    min_f: float
    max_f: float
    ideal_f: float


@dataclass(frozen=True)
class FermentationProfile:
    key: str
    name: str
    temp_range: TempRange
    target_days: int
    color: str


@dataclass(frozen=True)
class YeastStrain:
    code: str
    display_name: str
    temp_range_text: str
    alcohol_tolerance_text: str
    notes: str


_FERMENTATION_PROFILES: tuple[FermentationProfile, ...] = (
    FermentationProfile(
        key="cool_white",
        name="Cool White",
        temp_range=TempRange(min_f=50, max_f=60, ideal_f=55),
        target_days=14,
        color="#3b82f6",
    ),
    FermentationProfile(
        key="warm_white",
        name="Warm White",
        temp_range=TempRange(min_f=60, max_f=70, ideal_f=65),
        target_days=10,
        color="#f59e0b",
    ),
    FermentationProfile(
        key="cool_red",
        name="Cool Red",
        temp_range=TempRange(min_f=70, max_f=80, ideal_f=75),
        target_days=12,
        color="#ec4899",
    ),
    FermentationProfile(
        key="warm_red",
        name="Warm Red",
        temp_range=TempRange(min_f=80, max_f=90, ideal_f=85),
        target_days=8,
        color="#dc2626",
    ),
    FermentationProfile(
        key="carbonic",
        name="Carbonic Maceration",
        temp_range=TempRange(min_f=85, max_f=95, ideal_f=90),
        target_days=14,
        color="#a855f7",
    ),
)

_YEAST_STRAINS: tuple[YeastStrain, ...] = (
    YeastStrain("EC-1118", "EC-1118 (Prise de Mousse)", "50-86°F", "18%", "Champagne yeast, clean, neutral, reliable"),
    YeastStrain("D47", "D47 (Côte des Blancs)", "59-86°F", "15%", "White wines, tropical fruit, spicy notes"),
    YeastStrain("RC212", "RC-212 (Bourgovin)", "68-86°F", "16%", "Pinot Noir, fruity, complex"),
    YeastStrain("BM4x4", "BM 4x4", "64-86°F", "16%", "Bordeaux reds, deep color, structure"),
    YeastStrain("BDX", "BDX (Pasteur Red)", "59-86°F", "16%", "Syrah, Merlot, robust reds"),
    YeastStrain("D254", "D254 (Assmanshausen)", "60-90°F", "16%", "Zinfandel, big reds, jammy"),
    YeastStrain("QA23", "QA23 (Portugal)", "59-86°F", "16%", "Aromatic whites, citrus, floral"),
    YeastStrain("71B", "71B-1122 (Narbonne)", "59-86°F", "14%", "Reduces acidity, semi-sweet wines"),
)

# First match wins, so the order of this table matters.
_VARIETAL_YEAST_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("chardonnay", "sauvignon"), "D47"),
    (("pinot",), "RC212"),
    (("cabernet", "merlot"), "BM4x4"),
    (("syrah", "petite"), "BDX"),
    (("zinfandel",), "D254"),
)

DEFAULT_YEAST_CODE = "EC-1118"

_PROFILES_BY_KEY = {profile.key: profile for profile in _FERMENTATION_PROFILES}
_STRAINS_BY_CODE = {strain.code.upper(): strain for strain in _YEAST_STRAINS}


def list_fermentation_profiles() -> list[FermentationProfile]:
    return list(_FERMENTATION_PROFILES)


def resolve_fermentation_profile(key: str | None) -> FermentationProfile | None:
    if not key:
        return None
    return _PROFILES_BY_KEY.get(key.strip().lower())


def list_yeast_strains(search: str | None = None) -> list[YeastStrain]:
    if not search:
        return list(_YEAST_STRAINS)

    query = search.strip().lower()
    return [
        strain
        for strain in _YEAST_STRAINS
        if query in strain.code.lower() or query in strain.display_name.lower() or query in strain.notes.lower()
    ]


def resolve_yeast_strain(code: str) -> YeastStrain | None:
    token = code.strip()
    if not token:
        return None
    return _STRAINS_BY_CODE.get(token.upper())


def recommend_yeast(varietal: str | None) -> str:
    """Return the yeast strain code suggested for a grape varietal."""
    if not varietal:
        return DEFAULT_YEAST_CODE

    variety = varietal.lower()
    for keywords, code in _VARIETAL_YEAST_RULES:
        if any(keyword in variety for keyword in keywords):
            return code
    return DEFAULT_YEAST_CODE
