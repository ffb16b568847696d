"""
Attempt outcomes and canonical response models.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Union, TYPE_CHECKING, Dict, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..core.interface import Candidate


@dataclass
class AdapterAnswer:
    """Payload extracted from a successful upstream response."""
    text: Optional[str] = None
    image_bytes: Optional[bytes] = None


@dataclass
class AttemptOutcome:
    """Result of trying one candidate."""
    candidate: "Candidate"
    succeeded: bool
    answer_text: Optional[str] = None
    image_bytes: Optional[bytes] = None
    failure_reason: Optional[str] = None
    transient: bool = False
    skipped: bool = False

    @classmethod
    def success(cls, candidate: "Candidate", answer: AdapterAnswer) -> "AttemptOutcome":
        return cls(
            candidate=candidate,
            succeeded=True,
            answer_text=answer.text,
            image_bytes=answer.image_bytes,
        )

    @classmethod
    def failure(
        cls,
        candidate: "Candidate",
        reason: str,
        transient: bool = False,
        skipped: bool = False,
    ) -> "AttemptOutcome":
        return cls(
            candidate=candidate,
            succeeded=False,
            failure_reason=reason,
            transient=transient,
            skipped=skipped,
        )


@dataclass
class ExecutionResult:
    """
    Folded result of a fallback run.

    ``winner`` is set only when a candidate succeeded; otherwise the run is
    exhausted (or cancelled) and ``attempts`` holds every recorded failure.
    """
    winner: Optional[AttemptOutcome] = None
    attempts: List[AttemptOutcome] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.winner is not None

    @property
    def exhausted(self) -> bool:
        return self.winner is None

    @property
    def transient(self) -> bool:
        """True if any failed attempt was a recoverable upstream state."""
        return any(a.transient for a in self.attempts if not a.succeeded)

    @property
    def failures(self) -> List[AttemptOutcome]:
        return [a for a in self.attempts if not a.succeeded]


class TextAnswer(BaseModel):
    """Canonical text answer."""
    answer_text: str = Field(..., alias="answerText")
    retryable: Optional[bool] = None

    class Config:
        populate_by_name = True


class ImageAnswer(BaseModel):
    """
    Canonical image answer.

    On failure ``image_base64`` is None and ``advisory`` explains why, so an
    image request never comes back text-shaped.
    """
    image_base64: Optional[str] = Field(default=None, alias="imageBase64")
    advisory: Optional[str] = None
    retryable: Optional[bool] = None

    class Config:
        populate_by_name = True


class TitleAnswer(BaseModel):
    """Canonical title answer."""
    short_title: str = Field(..., alias="shortTitle")

    class Config:
        populate_by_name = True


CanonicalResponse = Union[TextAnswer, ImageAnswer, TitleAnswer]


def to_payload(response: CanonicalResponse) -> Dict[str, Any]:
    """Serialize a canonical response for the wire."""
    data = response.model_dump(by_alias=True, exclude_none=True)
    if isinstance(response, ImageAnswer):
        data.setdefault("imageBase64", None)
    return data
