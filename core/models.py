"""
Core Data Models for the HTML Translation Pipeline.

Defines the data structures shared across pipeline stages:
- TranslatableUnit: one block of markup extracted from the source document
- Chunk: a size-bounded slice of an oversized unit
- TranslationResult: per-unit outcome produced by the batch scheduler
- ExtractionPlan: what the extractor found and which fallback applies
- TranslatorConfig: provider settings handed in by the caller
- HtmlTranslationResult / TextTranslationResult: public entry point results
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from bs4 import Tag
from pydantic import BaseModel, Field, model_validator


class DisplayMode(str, Enum):
    """How translated content is merged back into the document."""
    BILINGUAL = "bilingual"
    TRANSLATED = "translated"


class TranslationService(str, Enum):
    """Translation provider variants."""
    AI = "ai"
    GOOGLE = "google"


class PlanKind(str, Enum):
    """Which branch of the extraction ladder produced the units."""
    BLOCKS = "blocks"
    DIVS = "divs"
    LINES = "lines"
    SLICES = "slices"
    WHOLE = "whole"
    EMPTY = "empty"


@dataclass
class TranslatableUnit:
    """
    Single translatable block.

    ``sequence_index`` is dense (0..N-1) in document order and is the only key
    used to map scheduler results back onto the document. ``element`` is a
    handle into the parsed document owned by the current pipeline call; it is
    None for synthetic units (lines, slices, whole-body text).
    """
    sequence_index: int
    source_markup: str
    element: Optional[Tag] = None
    is_chunked: bool = False


@dataclass
class Chunk:
    """Sub-slice of an oversized unit, bounded by the provider input limit."""
    parent_unit_index: int
    chunk_text: str


@dataclass
class ExtractionPlan:
    """Extractor output: the units plus the fallback branch that produced them."""
    kind: PlanKind
    units: list[TranslatableUnit] = field(default_factory=list)
    body_text: str = ""

    @property
    def is_structural(self) -> bool:
        """True when units point at live elements in the document."""
        return self.kind in (PlanKind.BLOCKS, PlanKind.DIVS)


class TranslationResult(BaseModel):
    """Outcome of one unit's translation. Exactly one of text/error is set."""
    unit_index: int = Field(..., ge=0, description="sequence_index of the source unit")
    translated_text: Optional[str] = Field(default=None, description="Translated markup")
    error: Optional[str] = Field(default=None, description="Failure reason")

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> "TranslationResult":
        if (self.translated_text is None) == (self.error is None):
            raise ValueError("exactly one of translated_text or error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.translated_text is not None


class TranslatorConfig(BaseModel):
    """Provider settings supplied by the external configuration store."""
    enabled: bool = Field(default=True, description="Master switch for translation")
    default_service: TranslationService = Field(
        default=TranslationService.GOOGLE,
        description="Preferred provider; falls back to the other when unconfigured",
    )
    ai_endpoint: Optional[str] = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="OpenAI-compatible chat completions endpoint",
    )
    ai_api_key: Optional[str] = Field(default=None, description="Bearer key for the AI endpoint")
    ai_model: str = Field(default="gpt-4o-mini", description="Chat model name")
    ai_translate_model: Optional[str] = Field(
        default=None, description="Model override used only for translation"
    )
    request_timeout_ms: int = Field(
        default=0, ge=0, description="Per-call timeout in ms (0 disables)"
    )

    @property
    def ai_configured(self) -> bool:
        return bool(self.ai_api_key and self.ai_endpoint)


class HtmlTranslationResult(BaseModel):
    """Result of translate_html. On total failure html is the original input."""
    translated_html: str = Field(default="", description="Reassembled document body")
    error: Optional[str] = Field(default=None, description="Human-readable error")
    error_code: Optional[str] = Field(default=None, description="Machine-readable error code")
    provider: Optional[str] = Field(default=None, description="Provider that served the call")
    plan: Optional[PlanKind] = Field(default=None, description="Extraction branch used")
    units_total: int = Field(default=0, ge=0)
    units_failed: int = Field(default=0, ge=0)
    metrics: Optional[dict[str, Any]] = Field(default=None, description="Stage timings")


class TextTranslationResult(BaseModel):
    """Result of translate_text (titles, previews)."""
    translated_text: str = Field(default="")
    error: Optional[str] = Field(default=None)


# === API Request/Response Models ===

class TranslateHtmlRequest(BaseModel):
    """Request to translate an article body."""
    content: str = Field(..., description="HTML or Markdown content")
    target_language: Optional[str] = Field(default=None, description="Defaults to settings")
    display_mode: Optional[DisplayMode] = Field(default=None)
    concurrency: Optional[int] = Field(default=None, ge=1, le=100)
    service: Optional[TranslationService] = Field(default=None, description="Force a provider")
    images: list[str] = Field(default_factory=list, description="Image URLs for plain-text content")
    auto: bool = Field(default=False, description="Only translate when the content is English")


class TranslateHtmlResponse(HtmlTranslationResult):
    skipped: bool = Field(default=False, description="True when auto mode left the content alone")


class TranslateTextRequest(BaseModel):
    """Request to translate a title or preview."""
    text: str
    target_language: Optional[str] = None
    service: Optional[TranslationService] = None
    article_id: Optional[str] = Field(default=None, description="Enables the title/preview cache")
    field: str = Field(default="title", pattern="^(title|preview)$")


class TranslateTextResponse(BaseModel):
    translated_text: str
    error: Optional[str] = None
    cached: bool = False


class DetectLanguageRequest(BaseModel):
    text: str


class DetectLanguageResponse(BaseModel):
    language: str
    is_english: bool
