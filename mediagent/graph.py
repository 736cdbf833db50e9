import logging
import time
from typing import Optional

from .confidence import ConfidenceProfile
from .nodes.language_node import language_node
from .nodes.planner_node import planner_node
from .nodes.scribe_node import scribe_audio_node, scribe_text_node
from .nodes.symptom_node import symptom_node
from .schemas import ProcessingResult, TranscriptionResult
from .state import ConsultationState
from .tools import MockTranscriber
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)


def new_consultation_id() -> str:
    return f"CONSULT-{int(time.time() * 1000)}"


class ConsultationPipeline:
    """
    scribe -> language -> symptom extraction -> treatment planner,
    then the final state is packed into a ProcessingResult.
    """

    def __init__(
        self,
        transcriber=None,
        vocabulary: Optional[Vocabulary] = None,
        confidence: Optional[ConfidenceProfile] = None,
    ):
        self.transcriber = transcriber or MockTranscriber()
        self.vocabulary = vocabulary or Vocabulary()
        self.confidence = confidence or ConfidenceProfile()

    def process_text(self, text: str, language: str = "auto") -> ProcessingResult:
        state = ConsultationState(declared_language=language, raw_transcript=text)
        state.audit_log.append("Workflow: starting text pipeline.")
        state = scribe_text_node(state, self.confidence.text_transcription)
        state = self._analyse(state)
        return self._to_result(state, self.confidence.text_overall())

    def process_audio(self, audio_path: str, size_bytes: int, language: str = "auto") -> ProcessingResult:
        state = ConsultationState(declared_language=language)
        state.audit_log.append("Workflow: starting audio pipeline.")
        state = scribe_audio_node(
            state,
            audio_path,
            size_bytes,
            self.transcriber,
            self.confidence.audio_transcription,
        )
        state = self._analyse(state)
        return self._to_result(state, self.confidence.audio_overall())

    def _analyse(self, state: ConsultationState) -> ConsultationState:
        state = language_node(state, self.confidence.translation)
        state = symptom_node(state, self.vocabulary)
        state = planner_node(state)
        return state

    def _to_result(self, state: ConsultationState, overall_confidence: float) -> ProcessingResult:
        result = ProcessingResult(
            transcription=TranscriptionResult(
                text=state.raw_transcript or "",
                language=state.language or "en",
                confidence=state.transcription_confidence,
                duration=state.duration,
            ),
            translation=state.translation,
            extracted_data=state.extracted,
            treatment_suggestions=state.suggestions,
            overall_confidence=overall_confidence,
            consultation_id=new_consultation_id(),
        )
        state.audit_log.append("Workflow: result compiled.")
        logger.debug("Consultation %s audit: %s", result.consultation_id, state.audit_log)
        return result
