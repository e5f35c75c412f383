"""Core — models, persistence, detectors and the tool instance registry."""
