"""
Binary encoding of the whole content catalog

The catalog is packed with msgpack as one versioned document:

    {"version": 1, "rules": {<rule id>: {"plugin": <str>, "body": <map>}}}

Only plain data (maps, arrays, strings, bytes, numbers, booleans, None) can
be encoded. Values of any other type make the whole encoding fail; a partial
blob is never returned.
"""

import logging
from typing import Any, Dict

import msgpack
from pydantic import ValidationError

from .content import ContentCatalog, RuleContent
from .errors import DecodingError, EncodingError

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

_PACK_ERRORS = (TypeError, ValueError, OverflowError)

# Map keys the decoder can rebuild; msgpack turns tuple keys into unhashable lists
_MAP_KEY_TYPES = (str, bytes, int, float, bool, type(None))


def _rule_document(rule: RuleContent) -> Dict[str, Any]:
    return {"plugin": rule.plugin, "body": rule.body}


def _check_map_keys(value: Any) -> None:
    """Raise TypeError for any map key that would not survive decoding"""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, _MAP_KEY_TYPES):
                raise TypeError(f"unsupported map key {key!r} of type {type(key).__name__}")
            _check_map_keys(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_map_keys(item)


def _pack(document: Any) -> bytes:
    return msgpack.packb(document, use_bin_type=True)


def _find_unencodable_rule(catalog: ContentCatalog):
    """Return (rule id, cause) of the first rule msgpack rejects"""
    for rule_id, rule in catalog.items():
        try:
            _pack({rule_id: _rule_document(rule)})
        except _PACK_ERRORS as e:
            return rule_id, e
    return None, None


def encode_catalog(catalog: ContentCatalog) -> bytes:
    """
    Serialize the whole catalog into a single byte string.

    Raises:
        EncodingError: some entry holds a value msgpack cannot represent
    """
    for rule_id, rule in catalog.items():
        try:
            _check_map_keys(rule.body)
        except TypeError as e:
            raise EncodingError("Cannot encode rules static content", rule_id=rule_id, cause=e) from e

    document = {
        "version": FORMAT_VERSION,
        "rules": {rule_id: _rule_document(rule) for rule_id, rule in catalog.items()},
    }
    try:
        return _pack(document)
    except _PACK_ERRORS as e:
        rule_id, cause = _find_unencodable_rule(catalog)
        raise EncodingError("Cannot encode rules static content", rule_id=rule_id, cause=cause or e) from e


def decode_catalog(data: bytes) -> ContentCatalog:
    """
    Rebuild a catalog from bytes produced by encode_catalog.

    Raises:
        DecodingError: the data is not a catalog document of a known version
    """
    try:
        document = msgpack.unpackb(data, raw=False, strict_map_key=False)
    except (ValueError, TypeError) as e:
        raise DecodingError(f"Malformed content blob: {e}") from e

    if not isinstance(document, dict):
        raise DecodingError("Content blob does not hold a catalog document")

    version = document.get("version")
    if version != FORMAT_VERSION:
        raise DecodingError(f"Unsupported content format version: {version!r}")

    rules = document.get("rules")
    if not isinstance(rules, dict):
        raise DecodingError("Content blob has no rules map")

    entries = {}
    for rule_id, entry in rules.items():
        if not isinstance(entry, dict) or "plugin" not in entry:
            raise DecodingError(f"Malformed rule entry '{rule_id}'")
        try:
            entries[rule_id] = RuleContent(plugin=entry["plugin"], body=entry.get("body") or {})
        except ValidationError as e:
            raise DecodingError(f"Invalid rule entry '{rule_id}': {e}") from e

    logger.debug(f"Decoded {len(entries)} rules from content blob")
    return ContentCatalog(entries)
