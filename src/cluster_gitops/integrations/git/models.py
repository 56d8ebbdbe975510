"""Value types exchanged with a repository session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RepositoryStatus(StrEnum):
    """What a remote probe found."""

    ABSENT = "absent"
    EMPTY = "empty"
    PRESENT = "present"


@dataclass(frozen=True)
class RepositoryProbe:
    """Tagged result of probing the remote repository.

    ``EMPTY`` means the repository exists but has no commits, so it cannot be
    cloned and has to be initialized locally instead.
    """

    status: RepositoryStatus
    name: str | None = None

    @classmethod
    def absent(cls) -> RepositoryProbe:
        return cls(RepositoryStatus.ABSENT)

    @classmethod
    def empty(cls, name: str) -> RepositoryProbe:
        return cls(RepositoryStatus.EMPTY, name)

    @classmethod
    def present(cls, name: str) -> RepositoryProbe:
        return cls(RepositoryStatus.PRESENT, name)


@dataclass(frozen=True)
class CreateRepoOptions:
    """Options for creating the remote repository."""

    name: str
    owner: str
    description: str = ""
    personal: bool = False
    private: bool = True
