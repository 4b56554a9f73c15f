"""
In-memory rule content catalog and group set

Both structures are built once at startup and never mutated afterwards, so
any number of concurrent requests may read them without synchronization.
"""

import copy
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import DuplicateContentError


class RuleContent(BaseModel):
    """
    Content of a single diagnostic rule.

    The freeze is shallow: fields cannot be reassigned, but ``body`` is a
    plain dict that readers must not modify. The body is deep copied on
    construction, so later changes to the loader's data do not reach it.
    """
    model_config = ConfigDict(frozen=True)

    plugin: str = Field(..., min_length=1, description="Plugin identifier (python module name)")
    body: Dict[str, Any] = Field(default_factory=dict, description="Rule metadata, opaque to the service")

    @field_validator("body")
    @classmethod
    def detach_body(cls, v):
        return copy.deepcopy(v)


class Group(BaseModel):
    """Named category used to classify rules"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Group identifier")
    name: str = Field(..., min_length=1, description="Human readable group name")
    description: Optional[str] = Field(default=None, description="Group description")
    tags: Optional[List[str]] = Field(default=None, description="Rule tags belonging to the group")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class _ReadOnlyIndex(Mapping):
    """Read-only, insertion ordered mapping shared by the catalog types"""

    _kind = "entry"

    def __init__(self, entries: Optional[Mapping] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    def __getitem__(self, key: str):
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._entries)!r})"

    @classmethod
    def _index(cls, values: Iterable, key) -> Dict[str, Any]:
        indexed: Dict[str, Any] = {}
        for value in values:
            identifier = key(value)
            if identifier in indexed:
                raise DuplicateContentError(cls._kind, identifier)
            indexed[identifier] = value
        return indexed


class ContentCatalog(_ReadOnlyIndex):
    """Immutable mapping of rule identifier to RuleContent"""

    _kind = "rule"

    @classmethod
    def from_rules(cls, rules: Iterable[RuleContent]) -> "ContentCatalog":
        """Build a catalog keyed by plugin identifier"""
        return cls(cls._index(rules, lambda rule: rule.plugin))

    @classmethod
    def empty(cls) -> "ContentCatalog":
        return cls()

    def all_rules(self) -> List[RuleContent]:
        """All rules in catalog iteration order"""
        return list(self._entries.values())

    def rule_ids(self) -> List[str]:
        return list(self._entries)


class GroupSet(_ReadOnlyIndex):
    """Immutable mapping of group identifier to Group"""

    _kind = "group"

    @classmethod
    def from_groups(cls, groups: Iterable[Group]) -> "GroupSet":
        return cls(cls._index(groups, lambda group: group.id))

    @classmethod
    def empty(cls) -> "GroupSet":
        return cls()

    def all_groups(self) -> List[Group]:
        return list(self._entries.values())
