# survey_ingest/pdf/errors.py
class ExtractionError(Exception):
    """A single extraction step failed or produced unusable text."""

class RenderError(ExtractionError):
    """No rendering backend could open the document."""
