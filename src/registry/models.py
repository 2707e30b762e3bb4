"""Data model for registry indexes and component definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


@dataclass
class ComponentInfo:
    """Index entry describing a component without its file contents."""

    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    dev_dependencies: List[str] = field(default_factory=list)
    registry_dependencies: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: Optional[str] = None) -> "ComponentInfo":
        return cls(
            name=str(data.get("name") or name or ""),
            type=data.get("type"),
            description=data.get("description"),
            dependencies=_str_list(data.get("dependencies")),
            dev_dependencies=_str_list(data.get("devDependencies")),
            registry_dependencies=_str_list(data.get("registryDependencies")),
        )


class IndexShape(Enum):
    ARRAY = "array"
    OBJECT = "object"


@dataclass
class RegistryIndex:
    """A registry index in either of its published shapes.

    Registries publish either a JSON array of entries or an object keyed by
    component name; ``shape`` records which one was received and
    :meth:`as_list` gives uniform access.
    """

    shape: IndexShape
    entries: List[ComponentInfo] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "RegistryIndex":
        return cls(IndexShape.ARRAY, [])

    @classmethod
    def from_json(cls, data: Any) -> Optional["RegistryIndex"]:
        """Build an index from decoded JSON; None when neither shape matches."""
        if isinstance(data, list):
            entries = [ComponentInfo.from_dict(d) for d in data if isinstance(d, dict)]
            return cls(IndexShape.ARRAY, [e for e in entries if e.name])
        if isinstance(data, dict):
            items = data.get("items")
            if isinstance(items, list):
                # shadcn registry.json layout: {"name": ..., "items": [...]}
                return cls.from_json(items)
            # error and metadata bodies are not indexes
            if not data or not all(isinstance(v, dict) for v in data.values()):
                return None
            entries = [ComponentInfo.from_dict(v, name=k) for k, v in data.items()]
            return cls(IndexShape.OBJECT, entries)
        return None

    def as_list(self) -> List[ComponentInfo]:
        return list(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)


@dataclass
class ComponentFile:
    content: str
    type: Optional[str] = None
    target: Optional[str] = None
    path: Optional[str] = None

    @property
    def target_path(self) -> str:
        """Declared destination: ``target`` unless empty, else ``path``."""
        return self.target or self.path or ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComponentFile":
        return cls(
            content=str(data.get("content") or ""),
            type=data.get("type"),
            target=data.get("target"),
            path=data.get("path"),
        )


@dataclass
class Component:
    """Full component definition as fetched from a registry."""

    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    dev_dependencies: List[str] = field(default_factory=list)
    registry_dependencies: List[str] = field(default_factory=list)
    files: List[ComponentFile] = field(default_factory=list)
    registry: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Component":
        return cls(
            name=str(data["name"]),
            type=data.get("type"),
            description=data.get("description"),
            dependencies=_str_list(data.get("dependencies")),
            dev_dependencies=_str_list(data.get("devDependencies")),
            registry_dependencies=_str_list(data.get("registryDependencies")),
            files=[ComponentFile.from_dict(f) for f in data.get("files") or []],
        )
