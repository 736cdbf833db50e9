import re

from ..confidence import MockConfidence
from ..schemas import Translation
from ..state import ConsultationState

# Checked in this order; first script found wins.
SCRIPT_PATTERNS = [
    ("ml", re.compile("[\u0D00-\u0D7F]")),   # Malayalam
    ("hi", re.compile("[\u0900-\u097F]")),   # Devanagari
    ("ta", re.compile("[\u0B80-\u0BFF]")),   # Tamil
    ("te", re.compile("[\u0C00-\u0C7F]")),   # Telugu
]

# audio consultations carry both sentences, typed ones only the first
MALAYALAM_TEXT_SAMPLE = "രോഗി നെഞ്ചുവേദനയും ശ്വാസതടസ്സവും അനുഭവിക്കുന്നു"
MALAYALAM_AUDIO_SAMPLE = (
    MALAYALAM_TEXT_SAMPLE + ". "
    "രോഗലക്ഷണങ്ങൾ 2 മണിക്കൂർ മുമ്പ് ആരംഭിച്ചു."
)


def detect_language(text: str) -> str:
    for code, pattern in SCRIPT_PATTERNS:
        if pattern.search(text or ""):
            return code
    return "en"


def resolve_language(declared: str, text: str) -> str:
    """'auto' means detect from the text; anything else is trusted as given."""
    if not declared or declared == "auto":
        return detect_language(text)
    return declared


def language_node(state: ConsultationState, translation_confidence: MockConfidence) -> ConsultationState:
    """
    Resolves state.language. A declared Malayalam consultation also gets a
    translation block (canned Malayalam original, the English text as output).
    """
    text = state.raw_transcript or ""
    if state.source == "audio":
        # canned transcripts are English whatever was declared
        state.language = "en" if state.declared_language == "auto" else state.declared_language
    else:
        state.language = resolve_language(state.declared_language, text)

    if state.declared_language == "ml":
        original = MALAYALAM_AUDIO_SAMPLE if state.source == "audio" else MALAYALAM_TEXT_SAMPLE
        state.translation = Translation(
            original_text=original,
            translated_text=text,
            source_language="ml",
            target_language="en",
            confidence=translation_confidence(),
        )
        state.audit_log.append("Language node: attached Malayalam translation.")

    state.audit_log.append(f"Language node: language={state.language}.")
    return state
