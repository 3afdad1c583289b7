from datetime import datetime
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ProposalStatus = Literal["draft", "sent", "signed"]
PaymentOption = Literal["milestone", "installment", "custom"]
SignatureRole = Literal["noviq", "licensee"]

DEFAULT_PROPOSAL_TITLE = "Service Agreement & Project Deliverables"
DEFAULT_TOTAL_DEVELOPMENT_FEE = Decimal("900")
DEFAULT_DOMAIN_PACKAGE_FEE = Decimal("0")
MAX_SIGNATURE_PAYLOAD_CHARS = 2_000_000


class PaymentTerms(BaseModel):
    model_config = ConfigDict(extra="forbid")

    upfront_percent: Decimal = Field(
        ge=10,
        le=100,
        description="Upfront share of the grand total in percent (custom plan only).",
        examples=["30"],
    )
    installments: Optional[int] = Field(
        default=None,
        ge=1,
        description="Number of monthly installments for the remaining balance (custom plan).",
        examples=[4],
    )
    fee_on_full: Optional[bool] = Field(
        default=None,
        description="Adds the flat base fee to the grand total before splitting.",
        examples=[False],
    )
    base_fee: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Flat surcharge applied when fee_on_full is set.",
        examples=["150"],
    )


class PaymentSchedule(BaseModel):
    upfront: Decimal = Field(description="Amount due on signature.", examples=["300"])
    remaining: Decimal = Field(description="Balance after the upfront payment.", examples=["700"])
    monthly: Decimal = Field(
        description="Recurring monthly amount, zero when the plan has no schedule.",
        examples=["0"],
    )
    months: int = Field(description="Number of monthly payments.", examples=[0])
    grand_total: Decimal = Field(
        description="Development fee plus domain package fee plus optional surcharge.",
        examples=["1000"],
    )


class ProposalItemInput(BaseModel):
    id: Optional[int] = Field(
        default=None,
        description="Existing item identifier; omit to insert a new scope item.",
        examples=[1],
    )
    title: str = Field(min_length=1, description="Scope item title.", examples=["Admin Panel"])
    description: Optional[str] = Field(
        default=None,
        description="Optional scope item description.",
        examples=["Dashboard for management."],
    )


class ProposalItemRecord(BaseModel):
    id: int = Field(description="Item identifier.", examples=[1])
    proposal_id: int = Field(description="Owning proposal identifier.", examples=[1])
    title: str = Field(description="Scope item title.", examples=["Admin Panel"])
    description: Optional[str] = Field(
        default=None, description="Scope item description.", examples=["Dashboard."]
    )
    order: int = Field(description="0-based display position.", examples=[0])


class ProposalFields(BaseModel):
    client_name: str
    title: str = DEFAULT_PROPOSAL_TITLE
    status: ProposalStatus = "draft"
    total_development_fee: Decimal = DEFAULT_TOTAL_DEVELOPMENT_FEE
    domain_package_fee: Optional[Decimal] = DEFAULT_DOMAIN_PACKAGE_FEE
    payment_option: PaymentOption = "milestone"
    payment_terms: Optional[PaymentTerms] = None
    noviq_signature: Optional[str] = None
    noviq_sign_date: Optional[datetime] = None
    licensee_signature: Optional[str] = None
    licensee_sign_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ProposalRecord(ProposalFields):
    id: int
    items: List[ProposalItemRecord] = Field(default_factory=list)


class ProposalCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    client_name: str = Field(min_length=1, description="Client display name.", examples=["JHL"])
    title: str = Field(
        default=DEFAULT_PROPOSAL_TITLE,
        min_length=1,
        description="Agreement title.",
        examples=[DEFAULT_PROPOSAL_TITLE],
    )
    total_development_fee: Decimal = Field(
        default=DEFAULT_TOTAL_DEVELOPMENT_FEE,
        ge=0,
        description="Development fee; numeric strings are accepted.",
        examples=["900"],
    )
    domain_package_fee: Optional[Decimal] = Field(
        default=DEFAULT_DOMAIN_PACKAGE_FEE,
        ge=0,
        description="Optional domain package fee.",
        examples=["0"],
    )
    payment_option: PaymentOption = Field(
        default="milestone", description="Payment plan shape.", examples=["milestone"]
    )
    payment_terms: Optional[PaymentTerms] = Field(
        default=None, description="Plan parameters for the custom plan and surcharge."
    )
    items: List[ProposalItemInput] = Field(
        default_factory=list,
        description="Scope-of-work items; list position becomes display order.",
        examples=[[{"title": "Product Modules", "description": "Core functionality."}]],
    )


class ProposalUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    client_name: Optional[str] = Field(default=None, min_length=1, examples=["JHL"])
    title: Optional[str] = Field(default=None, min_length=1, examples=["Service Agreement"])
    status: Optional[ProposalStatus] = Field(default=None, examples=["sent"])
    total_development_fee: Optional[Decimal] = Field(default=None, ge=0, examples=["1200"])
    domain_package_fee: Optional[Decimal] = Field(default=None, ge=0, examples=["100"])
    payment_option: Optional[PaymentOption] = Field(default=None, examples=["installment"])
    payment_terms: Optional[PaymentTerms] = None
    noviq_signature: Optional[str] = Field(default=None, max_length=MAX_SIGNATURE_PAYLOAD_CHARS)
    licensee_signature: Optional[str] = Field(
        default=None, max_length=MAX_SIGNATURE_PAYLOAD_CHARS
    )
    items: Optional[List[ProposalItemInput]] = Field(
        default=None,
        description="Full replacement item list, reconciled by item id; omit to keep items.",
    )

    @field_validator(
        "client_name",
        "title",
        "status",
        "total_development_fee",
        "payment_option",
        mode="before",
    )
    @classmethod
    def _reject_explicit_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("value cannot be null")
        return value


class PublicProposalUpdateRequest(BaseModel):
    """Client-side payment tweak; unknown keys are kept aside so they can be dropped."""

    model_config = ConfigDict(extra="allow")

    payment_option: Optional[PaymentOption] = Field(default=None, examples=["custom"])
    payment_terms: Optional[PaymentTerms] = Field(
        default=None, examples=[{"upfront_percent": "40", "installments": 3}]
    )
    domain_package_fee: Optional[Decimal] = Field(default=None, ge=0, examples=["50"])


class ProposalSignRequest(BaseModel):
    role: str = Field(description="Signing party.", examples=["licensee"])
    signature: str = Field(
        min_length=1,
        max_length=MAX_SIGNATURE_PAYLOAD_CHARS,
        description="Opaque signature image payload, typically a data URI.",
        examples=["data:image/png;base64,iVBORw0KGgo="],
    )


class ProposalResponse(BaseModel):
    id: int = Field(examples=[1])
    client_name: str = Field(examples=["JHL"])
    title: str = Field(examples=[DEFAULT_PROPOSAL_TITLE])
    status: ProposalStatus = Field(examples=["draft"])
    total_development_fee: Decimal = Field(examples=["900"])
    domain_package_fee: Optional[Decimal] = Field(default=None, examples=["0"])
    payment_option: PaymentOption = Field(examples=["milestone"])
    payment_terms: Optional[PaymentTerms] = None
    noviq_signature: Optional[str] = None
    noviq_sign_date: Optional[datetime] = None
    licensee_signature: Optional[str] = None
    licensee_sign_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    locked: bool = Field(
        description="True once the client has signed; the public link becomes read-only.",
        examples=[False],
    )
    items: List[ProposalItemRecord] = Field(default_factory=list)


class ProposalPaymentScheduleResponse(BaseModel):
    proposal_id: int = Field(examples=[1])
    payment_option: PaymentOption = Field(examples=["milestone"])
    schedule: PaymentSchedule = Field(
        description="Computed schedule with amounts rounded to two decimals for display."
    )
