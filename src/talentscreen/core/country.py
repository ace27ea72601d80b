"""Country detection from free-text LinkedIn location fields."""

from __future__ import annotations

from typing import Any

COUNTRY_ALIASES: dict[str, str] = {
    "usa": "United States",
    "u.s.": "United States",
    "u.s.a.": "United States",
    "us": "United States",
    "united states of america": "United States",
    "america": "United States",
    "uk": "United Kingdom",
    "u.k.": "United Kingdom",
    "great britain": "United Kingdom",
    "britain": "United Kingdom",
    "england": "United Kingdom",
    "scotland": "United Kingdom",
    "wales": "United Kingdom",
    "northern ireland": "United Kingdom",
    "holland": "Netherlands",
    "the netherlands": "Netherlands",
    "czechia": "Czech Republic",
    "czech": "Czech Republic",
    "uae": "United Arab Emirates",
    "u.a.e.": "United Arab Emirates",
    "dubai": "United Arab Emirates",
    "abu dhabi": "United Arab Emirates",
    "deutschland": "Germany",
    "espana": "Spain",
    "españa": "Spain",
    "italia": "Italy",
    "brasil": "Brazil",
    "russian federation": "Russia",
    "republic of korea": "South Korea",
    "hong kong sar": "Hong Kong",
    "taiwan, province of china": "Taiwan",
    "viet nam": "Vietnam",
    "türkiye": "Turkey",
    "turkiye": "Turkey",
}

KNOWN_COUNTRIES: tuple[str, ...] = (
    "Afghanistan", "Albania", "Algeria", "Andorra", "Angola", "Argentina", "Armenia",
    "Australia", "Austria", "Azerbaijan", "Bahrain", "Bangladesh", "Belarus", "Belgium",
    "Bolivia", "Bosnia and Herzegovina", "Brazil", "Brunei", "Bulgaria", "Cambodia",
    "Cameroon", "Canada", "Chile", "China", "Colombia", "Costa Rica", "Croatia",
    "Cuba", "Cyprus", "Czech Republic", "Denmark", "Dominican Republic", "Ecuador",
    "Egypt", "El Salvador", "Estonia", "Ethiopia", "Finland", "France", "Georgia",
    "Germany", "Ghana", "Greece", "Guatemala", "Honduras", "Hong Kong", "Hungary",
    "Iceland", "India", "Indonesia", "Iran", "Iraq", "Ireland", "Israel", "Italy",
    "Jamaica", "Japan", "Jordan", "Kazakhstan", "Kenya", "Kuwait", "Latvia",
    "Lebanon", "Libya", "Lithuania", "Luxembourg", "Macau", "Malaysia", "Malta",
    "Mauritius", "Mexico", "Moldova", "Monaco", "Mongolia", "Montenegro", "Morocco",
    "Myanmar", "Nepal", "Netherlands", "New Zealand", "Nicaragua", "Nigeria", "Norway",
    "Oman", "Pakistan", "Palestine", "Panama", "Paraguay", "Peru", "Philippines",
    "Poland", "Portugal", "Puerto Rico", "Qatar", "Romania", "Russia", "Saudi Arabia",
    "Senegal", "Serbia", "Singapore", "Slovakia", "Slovenia", "South Africa",
    "South Korea", "Spain", "Sri Lanka", "Sweden", "Switzerland", "Syria", "Taiwan",
    "Thailand", "Tunisia", "Turkey", "Ukraine", "United Arab Emirates", "United Kingdom",
    "United States", "Uruguay", "Uzbekistan", "Venezuela", "Vietnam", "Yemen", "Zimbabwe",
)

_KNOWN_BY_LOWER: dict[str, str] = {name.lower(): name for name in KNOWN_COUNTRIES}

# Highest precision first; this order decides conflicts between fields.
PROFILE_COUNTRY_FIELDS: tuple[str, ...] = (
    "address_country_only",
    "address_with_country",
    "location",
    "job_location",
)


def _lookup(part: str) -> str | None:
    lowered = part.strip().lower()
    return COUNTRY_ALIASES.get(lowered) or _KNOWN_BY_LOWER.get(lowered)


def normalize_country_name(country: str) -> str:
    """Map aliases and case variants to the canonical name, else title-case."""
    trimmed = country.strip()
    found = _lookup(trimmed)
    if found:
        return found
    return " ".join(word[:1].upper() + word[1:].lower() for word in trimmed.split(" "))


def detect_country(location: str | None) -> str | None:
    """Return the normalized country named in ``location``, or None.

    Comma-separated parts are scanned right to left since the country is
    usually the last segment.
    """
    if not location or not isinstance(location, str):
        return None
    trimmed = location.strip()
    if not trimmed:
        return None

    lowered = trimmed.lower()
    if lowered in COUNTRY_ALIASES:
        return COUNTRY_ALIASES[lowered]

    parts = [part.strip() for part in trimmed.split(",") if part.strip()]
    for part in reversed(parts):
        found = _lookup(part)
        if found:
            return found

    if len(parts) == 1:
        normalized = normalize_country_name(parts[0])
        if normalized in KNOWN_COUNTRIES:
            return normalized
    return None


def extract_country(
    *,
    address_country_only: str | None = None,
    address_with_country: str | None = None,
    location: str | None = None,
    job_location: str | None = None,
) -> str | None:
    fields = {
        "address_country_only": address_country_only,
        "address_with_country": address_with_country,
        "location": location,
        "job_location": job_location,
    }
    for name in PROFILE_COUNTRY_FIELDS:
        country = detect_country(fields[name])
        if country:
            return country
    return None


def extract_country_from_profile(profile: Any) -> str | None:
    """Resolve the country of a profile model or raw camelCase payload."""
    if isinstance(profile, dict):
        return extract_country(
            address_country_only=profile.get("addressCountryOnly"),
            address_with_country=profile.get("addressWithCountry"),
            location=profile.get("location"),
            job_location=profile.get("jobLocation"),
        )
    return extract_country(
        address_country_only=profile.address_country_only,
        address_with_country=profile.address_with_country,
        location=profile.location,
        job_location=profile.job_location,
    )


def residence_country(profile: Any) -> str | None:
    """Country of the candidate's own address, ignoring job locations."""
    return extract_country(
        address_country_only=profile.address_country_only,
        address_with_country=profile.address_with_country,
    )


__all__ = [
    "COUNTRY_ALIASES",
    "KNOWN_COUNTRIES",
    "detect_country",
    "extract_country",
    "extract_country_from_profile",
    "normalize_country_name",
    "residence_country",
]
