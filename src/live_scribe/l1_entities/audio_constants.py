"""Audio constants shared across layers."""

SAMPLE_RATE = 16000  # canonical rate expected by the speech model
LIVE_WINDOW_SECONDS = 15.0
FILE_WINDOW_SECONDS = 30.0
