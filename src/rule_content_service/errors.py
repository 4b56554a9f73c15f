"""
Exception hierarchy for the Rule Content Service
"""

from typing import Optional


class ContentServiceError(Exception):
    """Base class for all service errors"""


class ContentLoadError(ContentServiceError):
    """Rule content or group definitions could not be loaded at startup"""


class DuplicateContentError(ContentLoadError):
    """Two entries share the same identifier"""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"Duplicate {kind} identifier: '{identifier}'")


class EncodingError(ContentServiceError):
    """The content catalog could not be serialized"""

    def __init__(self, message: str, rule_id: Optional[str] = None, cause: Optional[BaseException] = None):
        self.rule_id = rule_id
        self.cause = cause
        details = message
        if rule_id is not None:
            details = f"{details} (rule '{rule_id}')"
        if cause is not None:
            details = f"{details}: {cause}"
        super().__init__(details)


class DecodingError(ContentServiceError):
    """An encoded content blob could not be turned back into a catalog"""


class PathResolutionError(ContentServiceError):
    """A configured file path could not be made absolute"""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        message = f"Cannot resolve absolute path of '{path}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ResponseWriteError(ContentServiceError):
    """Rendering or writing a response body failed"""
