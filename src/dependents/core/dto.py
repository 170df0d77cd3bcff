from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class PackageIdentifier:
    name: str
    requested_version: Optional[str] = None


@dataclass(frozen=True)
class PackageMetadata:
    name: str
    version: str
    homepage: Optional[str] = None
    unpacked_size: int = 0       # bytes


@dataclass(frozen=True)
class DependentEdge:
    name: str
    declared_range: str = ""     # empty for dev-dependency rows


# Registry lookup outcome

@dataclass(frozen=True)
class Resolved:
    metadata: PackageMetadata


@dataclass(frozen=True)
class NotFound:
    status_code: int

    @property
    def reason(self) -> str:
        return f"HTTP error! Status: {self.status_code}"


@dataclass(frozen=True)
class TransportError:
    message: str

    @property
    def reason(self) -> str:
        return self.message


Resolution = Union[Resolved, NotFound, TransportError]
