"""
Mode routing.

Maps a request's declared mode to the ordered candidate chain that should
serve it.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from ..models.request import Mode, RequestEnvelope
from .errors import InvalidRequestError, ModeUnsupportedError
from .interface import Candidate
from .prompts import translate
from .registry import CandidateTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    """Routing decision for one request."""
    mode: Mode
    chain: Mode
    candidates: Tuple[Candidate, ...]
    envelope: RequestEnvelope

    @property
    def downgraded(self) -> bool:
        return self.chain != self.mode


class ModeRouter:
    """
    Selects the candidate chain for a request.

    - ``vision`` without an image in history uses the text chain.
    - ``text`` and ``reasoning`` carrying an image use the vision chain, so
      the image is never handed to a model that cannot read it.
    """

    def __init__(self, candidates: CandidateTable):
        self._candidates = candidates

    def resolve_mode(self, envelope: RequestEnvelope) -> Mode:
        """
        Raises:
            ModeUnsupportedError: If the mode is outside the closed set
        """
        try:
            return Mode(envelope.mode)
        except ValueError:
            raise ModeUnsupportedError(envelope.mode)

    def route(self, envelope: RequestEnvelope) -> Route:
        """
        Route a request.

        Raises:
            ModeUnsupportedError: Unknown mode
            InvalidRequestError: Nothing to send for the mode
        """
        mode = self.resolve_mode(envelope)

        if mode == Mode.IMAGE:
            if not envelope.image_prompt():
                raise InvalidRequestError("Image mode needs a prompt or a non-empty last message")
        elif not envelope.conversation():
            raise InvalidRequestError("Request needs a message history or a prompt")

        chain = mode
        if mode == Mode.VISION and not envelope.has_image:
            logger.info("Vision request without an image; using text candidates")
            chain = Mode.TEXT
        elif mode in (Mode.TEXT, Mode.REASONING) and envelope.has_image:
            logger.info(f"{mode.value} request carries an image; using vision candidates")
            chain = Mode.VISION

        return Route(
            mode=mode,
            chain=chain,
            candidates=self._candidates.get(chain, ()),
            envelope=translate(envelope, mode),
        )
