"""
Response normalization into the canonical envelope.
"""

import base64
import logging

from ..models.request import Mode
from ..models.response import (
    CanonicalResponse,
    ExecutionResult,
    ImageAnswer,
    TextAnswer,
    TitleAnswer,
)
from .messages import GoodwillMessages, messages_for

logger = logging.getLogger(__name__)

# Straight, curly, and backtick quotes a title model may echo back.
TITLE_QUOTES = "\"'`“”‘’«»"


def clean_title(text: str) -> str:
    """First line of ``text`` without surrounding whitespace or quotes."""
    lines = [line for line in text.strip().splitlines() if line.strip()]
    title = lines[0] if lines else ""
    return title.strip().strip(TITLE_QUOTES).strip()


class ResponseNormalizer:
    """
    Maps execution results to exactly one canonical shape per mode.

    text, reasoning, vision → TextAnswer; image → ImageAnswer;
    title → TitleAnswer. Exhausted chains become goodwill messages in the
    mode's own shape.
    """

    def __init__(self, messages: GoodwillMessages = None):
        self._messages = messages or messages_for("en")

    @property
    def messages(self) -> GoodwillMessages:
        return self._messages

    def normalize(self, result: ExecutionResult, mode: Mode) -> CanonicalResponse:
        if result.winner is None:
            return self.goodwill(mode, transient=result.transient)

        outcome = result.winner
        if mode == Mode.IMAGE:
            return ImageAnswer(image_base64=base64.b64encode(outcome.image_bytes).decode("ascii"))

        if mode == Mode.TITLE:
            title = clean_title(outcome.answer_text or "")
            if not title:
                logger.warning(f"Title from {outcome.candidate.label} was empty after cleaning")
                title = self._messages.default_title
            return TitleAnswer(short_title=title)

        return TextAnswer(answer_text=outcome.answer_text)

    def goodwill(self, mode: Mode, transient: bool = False) -> CanonicalResponse:
        """Advisory in the shape the caller expects for ``mode``."""
        if mode == Mode.IMAGE:
            if transient:
                return ImageAnswer(advisory=self._messages.image_retry_shortly, retryable=True)
            return ImageAnswer(advisory=self._messages.image_failed, retryable=False)

        if mode == Mode.TITLE:
            return TitleAnswer(short_title=self._messages.default_title)

        if transient:
            return TextAnswer(answer_text=self._messages.retry_shortly, retryable=True)
        return TextAnswer(answer_text=self._messages.exhausted)

    def mode_unsupported(self) -> TextAnswer:
        return TextAnswer(answer_text=self._messages.mode_unsupported)
