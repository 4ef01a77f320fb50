"""Audio format constants expected by whisper.cpp."""

SAMPLE_RATE = 16000
