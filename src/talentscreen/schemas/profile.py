"""Schema-tolerant view over scraped LinkedIn profile payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_PROFILE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="allow",
)


class LanguageEntry(BaseModel):
    """Language listed on a profile, with an optional free-text proficiency."""

    name: str = ""
    proficiency: str | None = None

    model_config = _PROFILE_CONFIG


class ExperienceEntry(BaseModel):
    """Employment history entry as returned by the scraper."""

    company_id: str | None = None
    company_name: str | None = None
    company_size: str | None = None
    company_website: str | None = None
    company_industry: str | None = None
    title: str | None = None
    job_description: str | None = None
    job_started_on: str | None = None
    job_ended_on: str | None = None
    job_still_working: bool | None = None
    job_location: str | None = None
    employment_type: str | None = None

    model_config = _PROFILE_CONFIG


class EducationEntry(BaseModel):
    """Education entry; some scraper versions use title/subtitle instead."""

    school_name: str | None = None
    degree_name: str | None = None
    field_of_study: str | None = None
    started_on: str | None = None
    ended_on: str | None = None
    description: str | None = None
    title: str | None = None
    subtitle: str | None = None

    model_config = _PROFILE_CONFIG

    @property
    def school(self) -> str | None:
        return self.school_name or self.title

    @property
    def degree(self) -> str | None:
        return self.degree_name or self.subtitle


class SkillEntry(BaseModel):
    name: str | None = None
    title: str | None = None

    model_config = _PROFILE_CONFIG

    @property
    def label(self) -> str:
        return self.name or self.title or "Unknown"


class LinkedInProfile(BaseModel):
    """Scraped profile document.

    Only the fields the pipeline reads are typed. Everything else the scraper
    returns is kept as extra data so new scraper fields pass through untouched.
    """

    linkedin_url: str
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    headline: str | None = None
    about: str | None = None
    job_title: str | None = None
    job_location: str | None = None
    company_name: str | None = None
    address_country_only: str | None = None
    address_with_country: str | None = None
    experiences: list[ExperienceEntry] = Field(default_factory=list)
    educations: list[EducationEntry] = Field(default_factory=list)
    skills: list[SkillEntry] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(default_factory=list)

    model_config = _PROFILE_CONFIG

    @field_validator("experiences", "educations", "skills", "languages", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def location(self) -> str | None:
        """Generic location field some scraper versions emit."""
        value = (self.model_extra or {}).get("location")
        return value if isinstance(value, str) else None

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the scraper's camelCase shape, extras included."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
