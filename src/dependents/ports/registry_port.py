from __future__ import annotations

from abc import ABC, abstractmethod

from dependents.core.dto import Resolution


class RegistryPort(ABC):

    @abstractmethod
    async def resolve(self, name: str, version: str = "latest") -> Resolution:
        raise NotImplementedError
