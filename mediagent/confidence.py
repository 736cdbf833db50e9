import random


class MockConfidence:
    """
    Decorative confidence score: base + random() * spread, clamped to [0, 1].

    Not a statistical signal. Kept behind this class so a real model
    score can replace it without touching the pipeline.
    """

    def __init__(self, base: float, spread: float = 0.0, rng: random.Random | None = None):
        self.base = base
        self.spread = spread
        self.rng = rng or random.Random()

    def __call__(self) -> float:
        value = self.base + self.rng.random() * self.spread
        return min(1.0, max(0.0, value))


class ConfidenceProfile:
    """The named generators used by the processing pipeline."""

    def __init__(self, rng: random.Random | None = None):
        rng = rng or random.Random()
        self.audio_transcription = MockConfidence(0.94, 0.05, rng)
        self.text_transcription = MockConfidence(0.95, 0.0, rng)
        self.translation = MockConfidence(0.92, 0.05, rng)
        self.audio_overall = MockConfidence(0.88, 0.10, rng)
        self.text_overall = MockConfidence(0.85, 0.10, rng)
