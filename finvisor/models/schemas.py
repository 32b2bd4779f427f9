"""
Pydantic Models and Schemas
===========================

Request bodies, provider payloads and wizard state models.

Inbound keys are camelCase to match the browser client; every model also
accepts the snake_case field names. Fields the handlers must report on
with a specific message are declared optional and checked in the route.
"""

from typing import Optional, List, Dict, Any
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Enums
class DocumentType(str, Enum):
    """Supported financial document types."""
    W2 = "w2"
    FAFSA = "fafsa"
    AID_LETTER = "aid_letter"
    TAX_RETURN = "tax_return"
    OTHER = "other"


class ContentType(str, Enum):
    """How an uploaded document's content is encoded."""
    IMAGE = "image"
    TEXT = "text"
    PDF = "pdf"


class ResearchType(str, Enum):
    """Research request flavours."""
    GENERAL = "general"
    POLICY = "policy"
    COMPARISON = "comparison"
    FACT_CHECK = "fact_check"


class PolicyTopic(str, Enum):
    """Aid policy topics understood by the research provider."""
    APPEAL_PROCESS = "appeal_process"
    SPECIAL_CIRCUMSTANCES = "special_circumstances"
    DEADLINES = "deadlines"
    REQUIREMENTS = "requirements"


class ServiceType(str, Enum):
    """Purchasable Finvisor services."""
    BASIC_APPEAL = "basic_appeal"
    PRO_APPEAL = "pro_appeal"
    PREMIUM_APPEAL = "premium_appeal"
    ADVISOR_SESSION = "advisor_session"


class StepStatus(str, Enum):
    """Playback status of a wizard step."""
    PENDING = "pending"
    PLAYING = "playing"
    COMPLETE = "complete"


# Base Models
class CamelModel(BaseModel):
    """Base model with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# Chat Models
class ChatMessage(CamelModel):
    """Single chat turn."""
    role: str = Field(default="user", description="user, assistant or system")
    content: str = Field(default="", description="Message text")


class ChatRequest(CamelModel):
    """Body of POST /api/chat."""
    messages: Optional[List[ChatMessage]] = None
    user_id: Optional[str] = None
    conversation_id: Optional[str] = None
    use_decagon: bool = False


# Document Models
class DocumentUpload(CamelModel):
    """A document submitted for parsing."""
    id: str = Field(..., description="Client-side document identifier")
    type: DocumentType = DocumentType.OTHER
    content: str = Field(default="", description="Base64 image data or plain text")
    content_type: ContentType = ContentType.TEXT


class DocumentsRequest(CamelModel):
    """Body of POST/PUT /api/documents."""
    documents: Optional[List[DocumentUpload]] = None


class DocumentField(CamelModel):
    """Extracted key/value pair."""
    key: str
    value: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    flag: Optional[bool] = None


# Student Profile Models
class Circumstance(CamelModel):
    """Changed financial circumstance."""
    type: str = Field(default="other", description="job_loss, medical, housing, ...")
    description: str = ""
    impact: Optional[float] = Field(default=None, description="Annual financial impact in USD")


class DocumentSummary(CamelModel):
    """Short summary of a document already on file."""
    type: str
    summary: str = ""


class StudentProfile(CamelModel):
    """Everything known about the student's aid situation."""
    name: Optional[str] = None
    school: Optional[str] = None
    current_aid: float = 0
    total_cost: float = 0
    gap: float = 0
    gpa: Optional[float] = None
    circumstances: List[Circumstance] = Field(default_factory=list)
    documents: List[DocumentSummary] = Field(default_factory=list)


# Strategy Models
class StrategyOptions(CamelModel):
    """Optional strategy add-ons."""
    include_extended_thinking: bool = False
    include_prediction: bool = False


class StrategyRequest(CamelModel):
    """Body of POST /api/strategy."""
    student_profile: Optional[StudentProfile] = None
    options: StrategyOptions = Field(default_factory=StrategyOptions)


# Research Models
class ResearchItem(CamelModel):
    """One researched fact with its source."""
    query: str = ""
    result: str = ""
    source: str = ""


class ResearchRequest(CamelModel):
    """Body of POST /api/research."""
    type: ResearchType = ResearchType.GENERAL
    queries: Optional[List[str]] = None
    school: Optional[str] = None
    topic: Optional[PolicyTopic] = None
    comparisons: Optional[List[str]] = None
    claim: Optional[str] = None


# Appeal Models
class AppealOptions(CamelModel):
    """Letter post-processing options."""
    enhance: bool = False
    format: str = Field(default="plain", description="plain, markdown or pdf")


class AppealRequest(CamelModel):
    """Body of POST/PUT /api/appeal."""
    student_profile: Optional[StudentProfile] = None
    research_data: List[ResearchItem] = Field(default_factory=list)
    strategy: List[str] = Field(default_factory=list)
    options: AppealOptions = Field(default_factory=AppealOptions)


# Submission Models
class PortalCredentials(CamelModel):
    """Student portal login."""
    username: str = ""
    password: str = ""


class AttachedDocument(CamelModel):
    """Document attached to an appeal submission."""
    name: str
    base64: str = ""


class AppealData(CamelModel):
    """What gets typed into the portal's appeal form."""
    letter_content: Optional[str] = None
    documents: List[AttachedDocument] = Field(default_factory=list)
    form_fields: Dict[str, str] = Field(default_factory=dict)


class SubmitOptions(CamelModel):
    """Submission behaviour switches."""
    dry_run: bool = False
    take_screenshots: bool = False


class SubmitRequest(CamelModel):
    """Body of POST /api/submit."""
    portal_url: Optional[str] = None
    credentials: Optional[PortalCredentials] = None
    appeal_data: Optional[AppealData] = None
    options: SubmitOptions = Field(default_factory=SubmitOptions)


class PortalScrapeRequest(CamelModel):
    """Body of PUT /api/submit."""
    portal_url: Optional[str] = None
    credentials: Optional[PortalCredentials] = None


# Payment Models
class PaymentRequest(CamelModel):
    """Body of POST /api/payment."""
    user_id: Optional[str] = None
    service: Optional[str] = None
    amount: Optional[float] = None


class ServiceOffer(CamelModel):
    """Marketplace listing for an agent service."""
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    duration: Optional[int] = Field(default=None, description="Minutes")
    deliverables: List[str] = Field(default_factory=list)


# Zoom Models
class ZoomMeetingRequest(CamelModel):
    """Body of POST /api/zoom."""
    topic: Optional[str] = None
    duration: Optional[int] = None
    scheduled_time: Optional[str] = None


class TranscriptEntry(CamelModel):
    """One utterance in an advisor session."""
    speaker: str
    text: str


class TranscriptAnalysisRequest(CamelModel):
    """Body of PUT /api/zoom."""
    transcript: List[TranscriptEntry] = Field(default_factory=list)
    student_context: str = ""


# Wizard Models
class RevealedItem(CamelModel):
    """Wizard item as last revealed to the client."""
    index: int
    kind: str
    phase: str
    text: str
    result: Optional[str] = None
    speaker: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class StepState(CamelModel):
    """Per-step wizard state."""
    index: int
    label: str
    status: StepStatus = StepStatus.PENDING
    items: List[RevealedItem] = Field(default_factory=list)


class WizardSnapshot(CamelModel):
    """Serialisable view of a wizard session."""
    session_id: str
    current_step: int
    total_steps: int
    label: str
    steps: List[StepState]
    can_continue: bool
    is_final: bool
