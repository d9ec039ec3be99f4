"""live-scribe -- continuous recording with a rolling speech-to-text transcript."""

__version__ = '0.3.0'
