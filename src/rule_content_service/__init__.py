"""
Rule Content Service - read-only distribution of rule content over HTTP

Serves an immutable catalog of diagnostic rule definitions, the groups used
to categorize them and a static OpenAPI specification.
"""

__version__ = "1.0.0"

from .config import Config, get_config
from .content import ContentCatalog, Group, GroupSet, RuleContent
from .encoding import decode_catalog, encode_catalog
from .errors import (
    ContentLoadError,
    ContentServiceError,
    DecodingError,
    EncodingError,
    PathResolutionError,
    ResponseWriteError,
)

__all__ = [
    "Config",
    "get_config",
    "ContentCatalog",
    "Group",
    "GroupSet",
    "RuleContent",
    "encode_catalog",
    "decode_catalog",
    "ContentServiceError",
    "ContentLoadError",
    "DecodingError",
    "EncodingError",
    "PathResolutionError",
    "ResponseWriteError",
]
