"""
Gemini Wire Models

Pydantic models for the generateContent request body and a validated
decode of its response and error envelopes.
"""

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Part(_WireModel):
    """Text fragment of a content block."""

    text: str | None = Field(None, description="Text payload")


class Content(_WireModel):
    """Role-tagged content block."""

    role: str | None = Field(None, description="Author role (user or model)")
    parts: list[Part] = Field(default_factory=list, description="Content parts")


class SystemInstruction(_WireModel):
    """System prompt block (no role)."""

    parts: list[Part] = Field(default_factory=list)


class GenerationConfig(_WireModel):
    """Sampling parameters."""

    temperature: float | None = Field(None, ge=0.0, le=2.0)
    top_k: int | None = Field(None, gt=0, alias="topK")
    max_output_tokens: int | None = Field(None, gt=0, alias="maxOutputTokens")


class GenerateContentRequest(_WireModel):
    """Request body for models/{model}:generateContent."""

    contents: list[Content] = Field(..., min_length=1)
    system_instruction: SystemInstruction | None = Field(None, alias="systemInstruction")
    generation_config: GenerationConfig | None = Field(None, alias="generationConfig")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Candidate(_WireModel):
    content: Content | None = None
    finish_reason: str | None = Field(None, alias="finishReason")


class PromptFeedback(_WireModel):
    block_reason: str | None = Field(None, alias="blockReason")


class GenerateContentResponse(_WireModel):
    """Successful response envelope."""

    candidates: list[Candidate] = Field(default_factory=list)
    prompt_feedback: PromptFeedback | None = Field(None, alias="promptFeedback")

    def first_text(self) -> str:
        """Concatenated text of the first candidate, or an empty string."""
        if not self.candidates:
            return ""
        content = self.candidates[0].content
        if content is None:
            return ""
        return "".join(part.text for part in content.parts if part.text)

    @property
    def block_reason(self) -> str | None:
        if self.prompt_feedback is None:
            return None
        return self.prompt_feedback.block_reason


class ErrorDetail(_WireModel):
    code: int | None = None
    message: str | None = None
    status: str | None = None


class ErrorEnvelope(_WireModel):
    """Error body returned with non-2xx responses."""

    error: ErrorDetail
