"""Data models for the dependency index.

Dictionaries produced by ``to_dict`` use the camelCase field names of the
persisted index format so that indexes written here can be read by other
implementations of the same format, and vice versa.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class RelationType(str, Enum):
    """Kind of a dependency edge between two types."""

    IMPORT = "import"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    FIELD_INJECTION = "field_injection"
    METHOD_CALL = "method_call"


class ChangeType(str, Enum):
    """Kind of an API-breaking edit."""

    CLASS_REMOVED = "class_removed"
    METHOD_REMOVED = "method_removed"
    SIGNATURE_CHANGED = "signature_changed"
    INTERFACE_CHANGED = "interface_changed"


class Severity(str, Enum):
    """Severity of a breaking change."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


@dataclass
class SourceFile:
    """A file read from the repository during one indexing pass."""

    path: str  # absolute path
    relative_path: str  # forward-slash path from the repository root
    content: str
    size: int
    last_modified: datetime


@dataclass
class ParameterInfo:
    """A declared method parameter."""

    name: str
    type: str  # as written in source, not resolved

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParameterInfo":
        return cls(name=data["name"], type=data["type"])


@dataclass
class MethodInfo:
    """A public method or constructor of a type."""

    name: str
    signature: str
    line: int
    return_type: str = ""  # empty for constructors
    parameters: List[ParameterInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "signature": self.signature,
            "line": self.line,
            "returnType": self.return_type,
            "parameters": [p.to_dict() for p in self.parameters],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MethodInfo":
        return cls(
            name=data["name"],
            signature=data["signature"],
            line=data.get("line", 0),
            return_type=data.get("returnType") or "",
            parameters=[ParameterInfo.from_dict(p) for p in data.get("parameters") or []],
        )


@dataclass
class ClassInfo:
    """A class or interface and its public surface."""

    name: str
    path: str
    package: Optional[str] = None
    public_methods: List[MethodInfo] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)  # supertypes, direct only
    dependents: List[str] = field(default_factory=list)  # never filled by extraction

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "package": self.package,
            "publicMethods": [m.to_dict() for m in self.public_methods],
            "dependencies": list(self.dependencies),
            "dependents": list(self.dependents),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassInfo":
        return cls(
            name=data["name"],
            path=data.get("path", ""),
            package=data.get("package"),
            public_methods=[MethodInfo.from_dict(m) for m in data.get("publicMethods") or []],
            dependencies=list(data.get("dependencies") or []),
            dependents=list(data.get("dependents") or []),
        )


@dataclass
class DependencyRelation:
    """A directed dependency edge between two type names."""

    source: str
    target: str
    type: RelationType
    file: str
    line: int
    usage: Optional[List[str]] = None

    @property
    def key(self) -> str:
        """Key of this relation in the index (one edge per ordered pair)."""
        return f"{self.source} -> {self.target}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "from": self.source,
            "to": self.target,
            "type": self.type.value,
            "file": self.file,
            "line": self.line,
        }
        if self.usage is not None:
            data["usage"] = list(self.usage)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencyRelation":
        usage = data.get("usage")
        return cls(
            source=data["from"],
            target=data["to"],
            type=RelationType(data["type"]),
            file=data.get("file", ""),
            line=data.get("line", 0),
            usage=list(usage) if usage is not None else None,
        )


@dataclass
class FileMetadata:
    """Per-file summary stored in the index."""

    path: str
    language: str
    size: int
    last_modified: str  # ISO-8601 UTC
    classes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "language": self.language,
            "size": self.size,
            "lastModified": self.last_modified,
            "classes": list(self.classes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileMetadata":
        return cls(
            path=data["path"],
            language=data["language"],
            size=data.get("size", 0),
            last_modified=data.get("lastModified", ""),
            classes=list(data.get("classes") or []),
        )


@dataclass
class FileAnalysis:
    """Structured extraction of one source file."""

    classes: List[ClassInfo] = field(default_factory=list)
    dependencies: List[DependencyRelation] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)


@dataclass
class IndexMetadata:
    """Summary statistics of one index build."""

    total_files: int = 0
    languages: List[str] = field(default_factory=list)
    indexing_duration: int = 0  # milliseconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "languages": list(self.languages),
            "indexingDuration": self.indexing_duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IndexMetadata":
        return cls(
            total_files=data.get("totalFiles", 0),
            languages=list(data.get("languages") or []),
            indexing_duration=data.get("indexingDuration", 0),
        )


@dataclass
class DependencyIndex:
    """Repository-wide snapshot of types, relations and files."""

    repository: str
    last_updated: str
    classes: Dict[str, ClassInfo] = field(default_factory=dict)  # keyed by simple name
    dependencies: Dict[str, DependencyRelation] = field(default_factory=dict)  # "from -> to"
    files: Dict[str, FileMetadata] = field(default_factory=dict)  # keyed by relative path
    metadata: IndexMetadata = field(default_factory=IndexMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository": self.repository,
            "lastUpdated": self.last_updated,
            "index": {
                "classes": {name: c.to_dict() for name, c in self.classes.items()},
                "dependencies": {key: d.to_dict() for key, d in self.dependencies.items()},
                "files": {path: f.to_dict() for path, f in self.files.items()},
            },
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencyIndex":
        body = data.get("index") or {}
        return cls(
            repository=data["repository"],
            last_updated=data.get("lastUpdated", ""),
            classes={
                name: ClassInfo.from_dict(c) for name, c in (body.get("classes") or {}).items()
            },
            dependencies={
                key: DependencyRelation.from_dict(d)
                for key, d in (body.get("dependencies") or {}).items()
            },
            files={path: FileMetadata.from_dict(f) for path, f in (body.get("files") or {}).items()},
            metadata=IndexMetadata.from_dict(data.get("metadata") or {}),
        )


@dataclass
class Location:
    """Position of a breaking change in source."""

    file: str
    line: int


@dataclass
class BreakingChange:
    """An API-breaking edit between two versions of a file."""

    type: ChangeType
    severity: Severity
    description: str
    location: Location
    class_name: str = ""  # type the change belongs to
    affected_files: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "location": {"file": self.location.file, "line": self.location.line},
        }
        if self.affected_files is not None:
            data["affectedFiles"] = list(self.affected_files)
        return data
