"""Core data models for the Greenhouse Autofiller."""

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ProfileModel(BaseModel):
    """Base for profile snapshots: immutable, camelCase on the wire."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Education(ProfileModel):
    """One entry of the candidate's educational background."""
    school: str = Field("", description="School or university name")
    degree: str = Field("", description="Degree type")
    field_of_study: str = Field("", alias="field", description="Field of study")
    end_date: str = Field("", alias="endDate", description="Graduation date")


class Experience(ProfileModel):
    """One entry of the candidate's work experience."""
    company: str = Field("", description="Company name")
    title: str = Field("", description="Job title")
    start_date: str = Field("", alias="startDate", description="Start date")
    end_date: str = Field("", alias="endDate", description="End date")
    description: str = Field("", description="Role description")


class CandidateProfile(ProfileModel):
    """Complete candidate profile handed to the engine for one fill invocation."""
    first_name: str = Field("", alias="firstName", description="First name")
    last_name: str = Field("", alias="lastName", description="Last name")
    email: str = Field("", description="Email address")
    phone: str = Field("", description="Phone number")
    education: List[Education] = Field(default_factory=list, description="Educational background, most recent first")
    experience: List[Experience] = Field(default_factory=list, description="Work experience, most recent first")
    resume_file: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("resumeFile", "resumePath", "resume_file"),
        serialization_alias="resumeFile",
        description="Resume as a data:<mime>;base64,<payload> URI"
    )

    @field_validator("resume_file", mode="before")
    @classmethod
    def _blank_resume_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_wire(self) -> dict:
        """Serialize to the camelCase shape carried by the AUTOFILL command."""
        return self.model_dump(by_alias=True)


class AutofillCommand(BaseModel):
    """Inbound run command."""
    type: Literal["AUTOFILL"] = Field("AUTOFILL", description="Message type")
    candidate: CandidateProfile = Field(..., description="Profile snapshot to inject")


class AutofillResponse(BaseModel):
    """Synchronous acknowledgement of an inbound command."""
    success: bool = Field(..., description="Whether the fill was scheduled")
