"""
Goodwill messages returned in place of raw errors.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GoodwillMessages:
    """Pre-authored advisories for one locale."""
    exhausted: str
    retry_shortly: str
    image_failed: str
    image_retry_shortly: str
    mode_unsupported: str
    default_title: str


MESSAGES = {
    "en": GoodwillMessages(
        exhausted=(
            "Sorry, I couldn't reach my study helpers right now. "
            "Please try asking again in a moment."
        ),
        retry_shortly=(
            "The AI tutor is warming up. Please wait about 20 seconds and ask again."
        ),
        image_failed=(
            "I couldn't draw that picture right now. "
            "Please try a simpler description or try again later."
        ),
        image_retry_shortly=(
            "The drawing model is warming up. Please wait about 20 seconds and try again."
        ),
        mode_unsupported=(
            "I'm not sure how to help with that kind of request yet. "
            "Try asking me a question instead!"
        ),
        default_title="New Chat",
    ),
    "hi": GoodwillMessages(
        exhausted=(
            "माफ़ कीजिए, अभी मैं जवाब नहीं दे पा रहा हूँ। "
            "कृपया थोड़ी देर बाद फिर से पूछें।"
        ),
        retry_shortly=(
            "AI ट्यूटर तैयार हो रहा है। कृपया लगभग 20 सेकंड रुककर फिर से पूछें।"
        ),
        image_failed=(
            "अभी मैं यह चित्र नहीं बना पाया। "
            "कृपया आसान विवरण के साथ या थोड़ी देर बाद फिर कोशिश करें।"
        ),
        image_retry_shortly=(
            "चित्र बनाने वाला मॉडल तैयार हो रहा है। कृपया लगभग 20 सेकंड बाद फिर कोशिश करें।"
        ),
        mode_unsupported=(
            "मैं अभी इस तरह के अनुरोध में मदद नहीं कर सकता। "
            "कृपया मुझसे कोई सवाल पूछें!"
        ),
        default_title="नई बातचीत",
    ),
}


def messages_for(locale: str) -> GoodwillMessages:
    """Messages for a locale, falling back to English."""
    return MESSAGES.get((locale or "en").lower(), MESSAGES["en"])
