"""
Pydantic schemas for the document records rendered into PDFs.

One record per document kind. They are flat, already-resolved values:
dates arrive as display strings, amounts are computed upstream, and lists
are in the order they should be printed. The generators lay out whatever
they receive; the only business rules checked are the ones below, at the
boundary, before any rendering starts.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from app.schemas.branding import BrandingOptions


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Shared sub-records ---

class Person(_Record):
    """A learner listed on a document."""
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ProgrammeItem(_Record):
    """One module line of a convention's programme."""
    title: str
    duration: Optional[str] = None


class LineItem(_Record):
    """One row of a quote or invoice."""
    designation: str
    description: Optional[str] = None
    quantity: float
    unit_price: float       # excl. tax
    tax_rate: float         # percent, 0 = exempt
    amount: float           # excl. tax


def _require_lines(v: list[LineItem]) -> list[LineItem]:
    if len(v) < 1:
        raise ValueError("At least 1 line item is required")
    return v


# --- Training documents ---

class ConventionRecord(_Record):
    """Training agreement between the provider and a sponsoring company."""
    session_name: str
    session_number: str
    start_date: str
    end_date: str
    duration_hours: float
    duration_days: float
    location: str
    modality: str  # Présentiel, Distanciel, Mixte

    company_name: str
    company_siret: Optional[str] = None
    company_address: Optional[str] = None
    company_representative: Optional[str] = None

    trainer_name: Optional[str] = None
    learners: list[Person] = []

    price_excl_tax: float
    tax_amount: float
    price_incl_tax: float

    objectives: list[str] = []
    programme: list[ProgrammeItem] = []


class AttestationRecord(_Record):
    """End-of-training attestation for one learner."""
    learner_first_name: str
    learner_last_name: str
    learner_birth_date: Optional[str] = None
    session_name: str
    session_number: str
    start_date: str
    end_date: str
    duration_hours: float
    location: str
    objectives: list[str] = []
    result: Optional[str] = None  # Acquis, En cours d'acquisition, Non acquis
    issue_date: str


class ConvocationRecord(_Record):
    """Invitation sent to a learner before a session."""
    learner_first_name: str
    learner_last_name: str
    session_name: str
    session_number: str
    start_date: str
    end_date: str
    location: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    trainer_name: Optional[str] = None
    issue_date: str


class TimeSlot(_Record):
    """A half-day (or other) slot learners sign for."""
    start: str
    end: str


class AttendanceSheetRecord(_Record):
    """One day of attendance signatures for a session."""
    session_name: str
    session_number: str
    date: str
    slots: list[TimeSlot] = []
    learners: list[Person] = []
    trainer_name: Optional[str] = None


class ProgrammeModule(_Record):
    """A module of a programme sheet; `content` is editor HTML."""
    title: str
    content: Optional[str] = None
    duration: Optional[str] = None


class ProgrammeRecord(_Record):
    """Catalogue programme sheet of a training product."""
    title: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    duration_hours: Optional[float] = None
    duration_days: Optional[float] = None
    modality: Optional[str] = None
    target_audience: list[str] = []
    prerequisites: list[str] = []
    objectives: list[str] = []
    skills: list[str] = []
    modules: list[ProgrammeModule] = []
    issue_date: str


# --- Billing documents ---

class QuoteRecord(_Record):
    """Quote (devis) addressed to a company or an individual."""
    number: str
    issue_date: str
    due_date: Optional[str] = None
    subject: Optional[str] = None

    company_name: Optional[str] = None
    company_siret: Optional[str] = None
    company_address: Optional[str] = None
    contact_name: Optional[str] = None

    individual_name: Optional[str] = None
    individual_email: Optional[str] = None
    individual_address: Optional[str] = None

    lines: list[LineItem]
    total_excl_tax: float
    total_tax: float
    total_incl_tax: float

    conditions: Optional[str] = None
    legal_mentions: Optional[str] = None

    @field_validator("lines")
    @classmethod
    def validate_lines(cls, v: list[LineItem]) -> list[LineItem]:
        return _require_lines(v)

    @model_validator(mode="after")
    def validate_recipient(self):
        if not self.company_name and not self.individual_name:
            raise ValueError("A quote needs a company or an individual recipient")
        return self


class AttendingParticipant(_Record):
    """A participant who attended, with ISO dates of presence."""
    first_name: str
    last_name: str
    presence_dates: list[str] = []


class InvoiceRecord(_Record):
    """Invoice (facture) for a training action."""
    number: str
    issue_date: str
    due_date: Optional[str] = None
    subject: Optional[str] = None

    company_name: Optional[str] = None
    company_siret: Optional[str] = None
    company_address: Optional[str] = None
    contact_name: Optional[str] = None

    training_name: Optional[str] = None
    training_location: Optional[str] = None
    training_dates: Optional[str] = None
    training_modality: Optional[str] = None
    training_duration: Optional[str] = None
    expected_participants: Optional[int] = None
    participants: list[AttendingParticipant] = []

    lines: list[LineItem]
    total_excl_tax: float
    total_tax: float
    total_incl_tax: float

    conditions: Optional[str] = None
    legal_mentions: Optional[str] = None
    bank_details: Optional[str] = None
    vat_exempt: bool = False

    @field_validator("lines")
    @classmethod
    def validate_lines(cls, v: list[LineItem]) -> list[LineItem]:
        return _require_lines(v)


# --- Contracts ---

class SubcontractRecord(_Record):
    """Subcontracting agreement with a freelance trainer."""
    trainer_first_name: str
    trainer_last_name: str
    trainer_siret: Optional[str] = None
    trainer_nda: Optional[str] = None
    trainer_address: Optional[str] = None

    session_name: str
    session_number: str
    start_date: str
    end_date: str
    duration_hours: float
    duration_days: float
    location: str
    modality: str

    daily_rate: float
    tax_rate: float
    days: float
    amount_excl_tax: float
    tax_amount: float
    amount_incl_tax: float

    objectives: list[str] = []
    issue_date: str

    @property
    def trainer_full_name(self) -> str:
        return f"{self.trainer_first_name} {self.trainer_last_name}"


# --- Request envelope ---

RecordT = TypeVar("RecordT", bound=BaseModel)


class DocumentRequest(BaseModel, Generic[RecordT]):
    """Body of every generation endpoint: who issues it, and what to print."""
    branding: BrandingOptions
    record: RecordT
