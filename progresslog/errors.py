from __future__ import annotations


class ProgressLogError(RuntimeError):
    pass


class CaptureUnavailable(ProgressLogError):
    """The frame source could not hand back a frame."""


class AnalyzerUnavailable(ProgressLogError):
    """The analyzer could not be reached (transport failure)."""


class AnalyzerError(ProgressLogError):
    """The analyzer answered with a non-success status or unusable content."""


class InvalidCredential(ProgressLogError):
    pass
