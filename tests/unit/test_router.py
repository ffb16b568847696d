"""
Tests for mode routing and per-mode request translation.
"""

import pytest

from conftest import make_candidate, text_answer
from padhai_gateway.core.errors import InvalidRequestError, ModeUnsupportedError
from padhai_gateway.core.interface import ProviderCapability
from padhai_gateway.core.prompts import REASONING_INSTRUCTION, TITLE_INSTRUCTION
from padhai_gateway.core.router import ModeRouter
from padhai_gateway.models.request import Mode, RequestEnvelope, HistoryEntry


@pytest.fixture
def table():
    vision = (ProviderCapability.SYSTEM_INSTRUCTION, ProviderCapability.IMAGE_INPUT)
    return {
        Mode.TEXT: (make_candidate("text-a", text_answer("a")), make_candidate("text-b", text_answer("b"))),
        Mode.REASONING: (make_candidate("reason", text_answer("r")),),
        Mode.VISION: (make_candidate("vision-only", text_answer("v"), capabilities=vision),),
        Mode.IMAGE: (make_candidate("imagen", text_answer("i"), capabilities=(ProviderCapability.IMAGE_OUTPUT,)),),
        Mode.TITLE: (make_candidate("titler", text_answer("t")),),
    }


class TestModeRouter:
    """Test candidate selection per mode."""

    def test_text_mode(self, table):
        """Test text requests get the text chain in order."""
        route = ModeRouter(table).route(RequestEnvelope(mode="text", free_text_prompt="hi"))
        assert route.mode == Mode.TEXT
        assert [c.provider_id for c in route.candidates] == ["text-a", "text-b"]
        assert not route.downgraded

    def test_vision_with_image(self, table):
        """Test vision with an image uses the vision chain."""
        envelope = RequestEnvelope(
            mode="vision",
            message_history=[HistoryEntry(role="user", text="What is this?", image_ref="aGk=")],
        )
        route = ModeRouter(table).route(envelope)
        assert route.chain == Mode.VISION
        assert [c.provider_id for c in route.candidates] == ["vision-only"]

    def test_vision_without_image_downgrades(self, table):
        """Test vision without an image never reaches the vision-only candidate."""
        envelope = RequestEnvelope(
            mode="vision",
            message_history=[HistoryEntry(role="user", text="And what about mitochondria?")],
        )
        route = ModeRouter(table).route(envelope)
        assert route.mode == Mode.VISION
        assert route.chain == Mode.TEXT
        assert route.downgraded
        assert "vision-only" not in [c.provider_id for c in route.candidates]

    def test_text_with_image_upgrades(self, table):
        """Test a text request carrying an image is sent to vision candidates."""
        envelope = RequestEnvelope(
            mode="text",
            message_history=[HistoryEntry(role="user", text="Solve this", image_ref="aGk=")],
        )
        route = ModeRouter(table).route(envelope)
        assert route.chain == Mode.VISION

    def test_unknown_mode(self, table):
        """Test unknown modes are reported as unsupported."""
        with pytest.raises(ModeUnsupportedError) as exc_info:
            ModeRouter(table).route(RequestEnvelope(mode="unknown", free_text_prompt="hi"))
        assert exc_info.value.mode == "unknown"

    def test_image_without_prompt(self, table):
        """Test image mode requires a prompt or a non-empty last message."""
        envelope = RequestEnvelope(
            mode="image",
            message_history=[HistoryEntry(role="user", text="   ")],
        )
        with pytest.raises(InvalidRequestError):
            ModeRouter(table).route(envelope)

    def test_text_without_content(self, table):
        """Test a text request with nothing to send is invalid."""
        with pytest.raises(InvalidRequestError):
            ModeRouter(table).route(RequestEnvelope(mode="text"))

    def test_missing_chain_is_empty(self):
        """Test a mode with no configured candidates routes to an empty chain."""
        route = ModeRouter({}).route(RequestEnvelope(mode="reasoning", free_text_prompt="2+2?"))
        assert route.candidates == ()


class TestTranslation:
    """Test per-mode request translation."""

    def test_title_request(self, table):
        """Test title requests are rewritten into a summarization prompt."""
        envelope = RequestEnvelope(
            mode="title",
            message_history=[
                HistoryEntry(role="user", text="How do plants make food?", image_ref="aGk="),
                HistoryEntry(role="assistant", text="Through photosynthesis."),
            ],
            system_instruction="You are a tutor.",
        )
        route = ModeRouter(table).route(envelope)
        translated = route.envelope
        assert route.chain == Mode.TITLE
        assert translated.system_instruction == TITLE_INSTRUCTION
        assert not translated.has_image
        assert len(translated.message_history) == 1
        assert "How do plants make food?" in translated.message_history[0].text
        assert "Through photosynthesis." in translated.message_history[0].text
        assert translated.generation_options.max_output_tokens == 20

    def test_reasoning_gets_default_instruction(self, table):
        """Test reasoning requests get a step-by-step instruction when none is given."""
        route = ModeRouter(table).route(RequestEnvelope(mode="reasoning", free_text_prompt="2+2?"))
        assert route.envelope.system_instruction == REASONING_INSTRUCTION

    def test_reasoning_keeps_caller_instruction(self, table):
        """Test a caller's instruction is not overwritten."""
        envelope = RequestEnvelope(mode="reasoning", free_text_prompt="2+2?", system_instruction="Mine")
        assert ModeRouter(table).route(envelope).envelope.system_instruction == "Mine"

    def test_image_request_keeps_only_the_prompt(self, table):
        """Test image requests drop earlier history and photos."""
        envelope = RequestEnvelope(
            mode="image",
            message_history=[
                HistoryEntry(role="user", text="look", image_ref="aGk="),
                HistoryEntry(role="user", text="Draw a labelled leaf diagram"),
            ],
            system_instruction="You are a tutor.",
        )
        translated = ModeRouter(table).route(envelope).envelope
        assert not translated.has_image
        assert translated.message_history == []
        assert translated.system_instruction is None
        assert translated.image_prompt() == "Draw a labelled leaf diagram"
