"""
Pydantic schema for the organisation identity printed on every document.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BrandingOptions(BaseModel):
    """Who is issuing the document.

    Only the display name is required. Every other field is printed in
    the header/footer when present and simply left out when it is not.
    `logo` is an inline image (data URI or base64); other references are
    ignored because rendering never performs I/O.
    """
    model_config = ConfigDict(frozen=True)

    org_name: str = Field(min_length=1)
    siret: Optional[str] = None
    nda: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    logo: Optional[str] = None

    @field_validator("org_name")
    @classmethod
    def validate_org_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("org_name must not be blank")
        return v.strip()

    @field_validator("siret", "nda", "address", "email", "phone", "logo")
    @classmethod
    def blank_as_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None
