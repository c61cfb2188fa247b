"""Core LogView data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

NodeType = Literal["file", "directory"]
FileKind = Literal["json", "text", "xml", "yaml", "html", "error"]


@dataclass(slots=True)
class LogRecord:
    """Metadata row describing one downloaded and extracted log bundle."""

    id: int
    log_id: str
    file_path: str
    extract_path: str
    download_time: str
    tags: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class FileTreeNode:
    """One entry of an extracted archive.

    ``path`` is relative to the archive root and always uses ``/``.
    Directories carry a (possibly empty) ``children`` tuple, files a ``size``.
    """

    name: str
    path: str
    type: NodeType
    size: Optional[int] = None
    children: Optional[Tuple["FileTreeNode", ...]] = None

    @property
    def is_dir(self) -> bool:
        return self.type == "directory"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "path": self.path, "type": self.type}
        if self.size is not None:
            data["size"] = self.size
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass(slots=True)
class FileContent:
    content: str
    type: FileKind
    size: int
    truncated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class DownloadOutcome:
    """Result of one download, validate and extract run."""

    success: bool
    extract_path: str = ""
    file_path: str = ""
    error: str = ""
    skipped: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class RemoteLog:
    id: str
    boxname: str
    createat: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class DeviceCheckResult:
    success: bool
    output: str = ""
    error: str = ""
    device_name: str = ""
    device_address: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value or key == "success"}
