"""Rule-based English and native-language proficiency check."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from ..schemas import EnglishEvidence, LanguageCheckResult, LanguageEntry, LinkedInProfile
from .country import COUNTRY_ALIASES, normalize_country_name, residence_country

LANGUAGE_ALIASES: dict[str, str] = {
    "anglais": "english",
    "inglés": "english",
    "ingles": "english",
    "inglese": "english",
    "englisch": "english",
    "français": "french",
    "francais": "french",
    "español": "spanish",
    "espanol": "spanish",
    "castellano": "spanish",
    "deutsch": "german",
    "italiano": "italian",
    "português": "portuguese",
    "portugues": "portuguese",
    "nederlands": "dutch",
    "vlaams": "dutch",
    "flemish": "dutch",
    "svenska": "swedish",
    "norsk": "norwegian",
    "dansk": "danish",
    "suomi": "finnish",
    "íslenska": "icelandic",
    "ελληνικά": "greek",
    "ellinika": "greek",
    "česky": "czech",
    "cesky": "czech",
    "čeština": "czech",
    "cestina": "czech",
    "polski": "polish",
    "magyar": "hungarian",
    "română": "romanian",
    "romana": "romanian",
    "български": "bulgarian",
    "български език": "bulgarian",
    "українська": "ukrainian",
    "русский": "russian",
    "русский язык": "russian",
    "russkiy": "russian",
    "srpski": "serbian",
    "hrvatski": "croatian",
    "slovenščina": "slovenian",
    "slovenčina": "slovak",
    "eesti": "estonian",
    "latviešu": "latvian",
    "lietuvių": "lithuanian",
    "中文": "chinese",
    "zhongwen": "chinese",
    "mandarin": "chinese",
    "mandarin chinese": "chinese",
    "cantonese": "chinese",
    "普通话": "chinese",
    "廣東話": "chinese",
    "日本語": "japanese",
    "nihongo": "japanese",
    "한국어": "korean",
    "hangugeo": "korean",
    "tiếng việt": "vietnamese",
    "bahasa indonesia": "indonesian",
    "bahasa melayu": "malay",
    "bahasa malaysia": "malay",
    "ภาษาไทย": "thai",
    "phasa thai": "thai",
    "filipino": "tagalog",
    "မြန်မာဘာသာ": "burmese",
    "हिन्दी": "hindi",
    "हिंदी": "hindi",
    "বাংলা": "bengali",
    "اردو": "urdu",
    "தமிழ்": "tamil",
    "తెలుగు": "telugu",
    "ગુજરાતી": "gujarati",
    "ಕನ್ನಡ": "kannada",
    "മലയാളം": "malayalam",
    "मराठी": "marathi",
    "ਪੰਜਾਬੀ": "punjabi",
    "العربية": "arabic",
    "عربي": "arabic",
    "عربی": "arabic",
    "עברית": "hebrew",
    "ivrit": "hebrew",
    "فارسی": "persian",
    "farsi": "persian",
    "türkçe": "turkish",
    "turkce": "turkish",
    "kiswahili": "swahili",
}

COUNTRY_LANGUAGES: dict[str, tuple[str, ...]] = {
    "France": ("French",),
    "Germany": ("German",),
    "Italy": ("Italian",),
    "Spain": ("Spanish",),
    "Portugal": ("Portuguese",),
    "Netherlands": ("Dutch",),
    "Belgium": ("Dutch", "French", "German"),
    "Switzerland": ("German", "French", "Italian"),
    "Austria": ("German",),
    "Luxembourg": ("Luxembourgish", "French", "German"),
    "Ireland": ("English",),
    "United Kingdom": ("English",),
    "Sweden": ("Swedish",),
    "Norway": ("Norwegian",),
    "Denmark": ("Danish",),
    "Finland": ("Finnish",),
    "Iceland": ("Icelandic",),
    "Poland": ("Polish",),
    "Czech Republic": ("Czech",),
    "Slovakia": ("Slovak",),
    "Hungary": ("Hungarian",),
    "Romania": ("Romanian",),
    "Bulgaria": ("Bulgarian",),
    "Greece": ("Greek",),
    "Croatia": ("Croatian",),
    "Serbia": ("Serbian",),
    "Slovenia": ("Slovenian",),
    "Estonia": ("Estonian",),
    "Latvia": ("Latvian",),
    "Lithuania": ("Lithuanian",),
    "Ukraine": ("Ukrainian",),
    "Russia": ("Russian",),
    "Belarus": ("Belarusian",),
    "United States": ("English",),
    "Canada": ("English", "French"),
    "Mexico": ("Spanish",),
    "Brazil": ("Portuguese",),
    "Argentina": ("Spanish",),
    "Chile": ("Spanish",),
    "Colombia": ("Spanish",),
    "Peru": ("Spanish",),
    "Venezuela": ("Spanish",),
    "Israel": ("Hebrew",),
    "Turkey": ("Turkish",),
    "Saudi Arabia": ("Arabic",),
    "United Arab Emirates": ("Arabic",),
    "Jordan": ("Arabic",),
    "Lebanon": ("Arabic",),
    "Iran": ("Persian",),
    "Iraq": ("Arabic",),
    "Kuwait": ("Arabic",),
    "Qatar": ("Arabic",),
    "Bahrain": ("Arabic",),
    "Oman": ("Arabic",),
    "China": ("Chinese",),
    "Japan": ("Japanese",),
    "South Korea": ("Korean",),
    "Taiwan": ("Chinese",),
    "Hong Kong": ("Chinese",),
    "Mongolia": ("Mongolian",),
    "Singapore": ("English", "Chinese", "Malay"),
    "Malaysia": ("Malay",),
    "Indonesia": ("Indonesian",),
    "Thailand": ("Thai",),
    "Vietnam": ("Vietnamese",),
    "Philippines": ("Tagalog",),
    "Myanmar": ("Burmese",),
    "Cambodia": ("Khmer",),
    "Laos": ("Lao",),
    "India": ("Hindi",),
    "Pakistan": ("Urdu",),
    "Bangladesh": ("Bengali",),
    "Sri Lanka": ("Sinhala",),
    "Nepal": ("Nepali",),
    "Australia": ("English",),
    "New Zealand": ("English",),
    "South Africa": ("English",),
    "Nigeria": ("English",),
    "Kenya": ("Swahili",),
    "Egypt": ("Arabic",),
    "Morocco": ("Arabic",),
    "Algeria": ("Arabic",),
    "Tunisia": ("Arabic",),
}

ENGLISH_SPEAKING_COUNTRIES: tuple[str, ...] = (
    "United States",
    "United Kingdom",
    "Canada",
    "Australia",
    "Ireland",
    "New Zealand",
)

INTERNATIONAL_EMPLOYERS: tuple[str, ...] = (
    "Microsoft", "Google", "Amazon", "Meta", "Apple", "IBM", "Oracle", "SAP",
    "Cisco", "Intel", "Facebook", "Netflix", "Uber", "Airbnb",
)

ENGLISH_PROFESSIONAL_TOKENS: tuple[str, ...] = (
    "engineer", "developer", "manager", "director", "experience", "team",
)

PROFESSIONAL_LEVEL_MARKERS: tuple[str, ...] = ("professional", "native", "bilingual", "fluent")

_ENGLISH_LEVELS: dict[EnglishEvidence, str] = {
    EnglishEvidence.LISTED_WITHOUT_LEVEL: "Inferred Professional (listed without level)",
    EnglishEvidence.ENGLISH_SPEAKING_EDUCATION: "Inferred Professional (education in English-speaking country)",
    EnglishEvidence.INTERNATIONAL_EMPLOYER: "Inferred Professional (international employer)",
    EnglishEvidence.PROFILE_TEXT: "Inferred Professional (from profile context)",
    EnglishEvidence.ASSUMED: "Assumed (insufficient data, requires verification)",
}


def normalize_language(name: str) -> str:
    """Canonical lower-case English name for a listed language."""
    normalized = name.strip().lower()
    return LANGUAGE_ALIASES.get(normalized, normalized)


def is_professional_level(proficiency: str | None) -> bool:
    if not proficiency:
        return False
    lowered = proficiency.lower()
    return any(marker in lowered for marker in PROFESSIONAL_LEVEL_MARKERS)


def _country_terms(countries: Iterable[str]) -> list[str]:
    wanted = set(countries)
    terms = [country.lower() for country in wanted]
    # Two-letter aliases are too ambiguous inside school names.
    terms.extend(
        alias for alias, country in COUNTRY_ALIASES.items() if country in wanted and len(alias) > 2
    )
    return terms


_ENGLISH_COUNTRY_PATTERN = re.compile(
    "|".join(
        rf"(?<!\w){re.escape(term)}(?!\w)"
        for term in sorted(_country_terms(ENGLISH_SPEAKING_COUNTRIES), key=len, reverse=True)
    ),
    re.IGNORECASE,
)


@dataclass
class LanguageCheckConfig:
    """Confidence penalties and heuristic thresholds."""

    assumed_english_penalty: int = 20
    inferred_english_penalty: int = 10
    inferred_native_penalty: int = 10
    min_profile_text_length: int = 50


class LanguageChecker:
    """Infer English and native-language proficiency from a profile.

    The result is advisory: a failed check is reported to the evaluators but
    never rejects a candidate by itself.
    """

    def __init__(self, *, config: LanguageCheckConfig | None = None) -> None:
        self._config = config or LanguageCheckConfig()

    def check(self, profile: LinkedInProfile, target_country: str | None = None) -> LanguageCheckResult:
        country = target_country or profile.address_country_only
        country = normalize_country_name(country) if country else None
        languages = list(profile.languages)

        has_english, english_level, english_evidence = self._check_english(profile, languages)
        english_inferred = english_evidence not in (EnglishEvidence.EXPLICIT, EnglishEvidence.NONE)

        required = COUNTRY_LANGUAGES.get(country) if country else None
        native_skipped = required is None
        native_inferred = False
        if native_skipped:
            has_native = True
            native_name = "Unknown (Skipped)"
        else:
            native_name = "/".join(required)
            has_native, native_inferred = self._check_native(profile, languages, required, country)

        confidence = 100
        notes: list[str] = []
        if english_inferred:
            confidence -= self._config.inferred_english_penalty
            if english_evidence is EnglishEvidence.ASSUMED:
                # The assumed tier is penalized on top of the regular inference.
                confidence -= self._config.assumed_english_penalty
                notes.append("English proficiency ASSUMED - insufficient data, requires verification")
            else:
                notes.append(f"English proficiency inferred ({english_evidence.value.replace('_', ' ')})")
        if native_inferred:
            confidence -= self._config.inferred_native_penalty
            notes.append(f"{native_name} proficiency inferred from location")

        passed = has_english and has_native
        if passed:
            reasoning = (
                f"Language requirements met ({'; '.join(notes)})" if notes else "Meets language requirements"
            )
        else:
            missing = []
            if not has_english:
                missing.append("English")
            if not has_native:
                missing.append(native_name)
            reasoning = f"Unable to verify language requirements: {', '.join(missing)}"

        return LanguageCheckResult(
            has_english_proficiency=has_english,
            english_level=english_level,
            english_inferred=english_inferred,
            english_evidence=english_evidence,
            has_native_language_proficiency=has_native,
            native_language=native_name,
            native_inferred=native_inferred,
            native_skipped=native_skipped,
            current_country=country,
            confidence=max(confidence, 0),
            notes=notes,
            reasoning=reasoning,
            passed=passed,
        )

    def _check_english(
        self,
        profile: LinkedInProfile,
        languages: list[LanguageEntry],
    ) -> tuple[bool, str, EnglishEvidence]:
        entry = next((item for item in languages if normalize_language(item.name) == "english"), None)
        if entry is not None:
            if is_professional_level(entry.proficiency):
                return True, entry.proficiency or "Professional", EnglishEvidence.EXPLICIT
            if not entry.proficiency:
                evidence = EnglishEvidence.LISTED_WITHOUT_LEVEL
                return True, _ENGLISH_LEVELS[evidence], evidence
            # Listed below professional level: trust the candidate's own rating.
            return False, entry.proficiency, EnglishEvidence.NONE

        evidence = self._infer_english(profile)
        if evidence is EnglishEvidence.NONE:
            return False, "Unknown", evidence
        return True, _ENGLISH_LEVELS[evidence], evidence

    def _infer_english(self, profile: LinkedInProfile) -> EnglishEvidence:
        for education in profile.educations:
            text = " ".join(filter(None, [education.school, education.description]))
            if text and _ENGLISH_COUNTRY_PATTERN.search(text):
                return EnglishEvidence.ENGLISH_SPEAKING_EDUCATION

        employers = [employer.lower() for employer in INTERNATIONAL_EMPLOYERS]
        for experience in profile.experiences:
            company = (experience.company_name or "").lower()
            if company and any(employer in company for employer in employers):
                return EnglishEvidence.INTERNATIONAL_EMPLOYER

        sample = f"{profile.headline or ''} {profile.about or ''}".lower()
        if len(sample) > self._config.min_profile_text_length and any(
            token in sample for token in ENGLISH_PROFESSIONAL_TOKENS
        ):
            return EnglishEvidence.PROFILE_TEXT

        if profile.job_title or profile.headline or profile.experiences:
            return EnglishEvidence.ASSUMED
        return EnglishEvidence.NONE

    @staticmethod
    def _check_native(
        profile: LinkedInProfile,
        languages: list[LanguageEntry],
        required: tuple[str, ...],
        country: str,
    ) -> tuple[bool, bool]:
        """Return (has_native, inferred)."""
        wanted = {normalize_language(name) for name in required}
        entry = next((item for item in languages if normalize_language(item.name) in wanted), None)
        if entry is not None:
            if is_professional_level(entry.proficiency):
                return True, False
            if not entry.proficiency:
                return True, True
            return False, False
        if residence_country(profile) == country:
            return True, True
        return False, False


__all__ = [
    "COUNTRY_LANGUAGES",
    "LanguageCheckConfig",
    "LanguageChecker",
    "is_professional_level",
    "normalize_language",
]
