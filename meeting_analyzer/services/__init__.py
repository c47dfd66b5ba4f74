"""Application services (meeting analysis over external transcription and language models)."""
from meeting_analyzer.services.analysis_service import analyze_media, analyze_transcript, parse_analysis

__all__ = ["analyze_media", "analyze_transcript", "parse_analysis"]
