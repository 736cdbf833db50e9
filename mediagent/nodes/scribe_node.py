from ..confidence import MockConfidence
from ..state import ConsultationState
from ..tools import estimate_duration


def scribe_text_node(state: ConsultationState, confidence: MockConfidence) -> ConsultationState:
    """Typed consultation notes are used as the transcript verbatim."""
    state.source = "text"
    state.raw_transcript = state.raw_transcript or ""
    state.duration = 0
    state.transcription_confidence = confidence()
    state.audit_log.append("Scribe node: captured typed notes.")
    return state


def scribe_audio_node(
    state: ConsultationState,
    audio_path: str,
    audio_size_bytes: int,
    transcriber,
    confidence: MockConfidence,
) -> ConsultationState:
    """
    Converts an uploaded recording into a transcript.
    The upload size stands in for the recording length.
    """
    state.source = "audio"
    state.audio_size_bytes = audio_size_bytes
    state.raw_transcript = transcriber.transcribe(audio_path, state.declared_language)
    state.duration = estimate_duration(audio_size_bytes)
    state.transcription_confidence = confidence()
    state.audit_log.append(
        f"Scribe node: transcribed {audio_size_bytes} bytes (~{state.duration}s)."
    )
    return state
