"""
Per-mode request translation.

Rewrites an envelope into what the candidates of its mode should actually
be asked. Text and vision requests pass through untouched.
"""

from ..models.request import Mode, RequestEnvelope, HistoryEntry, GenerationOptions

TITLE_INSTRUCTION = (
    "You name study conversations. Reply with a short title of at most six "
    "words. Reply with the title only: no quotes, no punctuation at the end, "
    "no explanation."
)

REASONING_INSTRUCTION = (
    "Work through the problem step by step, then state the final answer "
    "clearly on its own line."
)

# Characters of conversation shown to the title model.
TITLE_CONTEXT_CHARS = 600


def translate(envelope: RequestEnvelope, mode: Mode) -> RequestEnvelope:
    """Return the envelope to send for ``mode``."""
    if mode == Mode.TITLE:
        return _title_request(envelope)
    if mode == Mode.IMAGE:
        # Image models read only the prompt.
        return RequestEnvelope(mode=Mode.IMAGE.value, free_text_prompt=envelope.image_prompt())
    if mode == Mode.REASONING and not envelope.system_instruction:
        return envelope.model_copy(update={"system_instruction": REASONING_INSTRUCTION})
    return envelope


def _title_request(envelope: RequestEnvelope) -> RequestEnvelope:
    excerpt = "\n".join(
        f"{entry.role}: {entry.text}"
        for entry in envelope.conversation()
        if entry.text and entry.role != "system"
    )[:TITLE_CONTEXT_CHARS]

    return RequestEnvelope(
        mode=Mode.TITLE.value,
        message_history=[
            HistoryEntry(role="user", text=f"Conversation:\n{excerpt}\n\nTitle:"),
        ],
        system_instruction=TITLE_INSTRUCTION,
        generation_options=GenerationOptions(temperature=0.3, max_output_tokens=20),
    )
