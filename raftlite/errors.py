"""Error types raised by the raft core."""

from __future__ import annotations

import enum
from typing import Any, Optional


class StorageErrorKind(enum.Enum):
    """The ways a storage backend can fail."""

    COMPACTED = "log compacted"
    UNAVAILABLE = "log unavailable"
    LOG_TEMPORARILY_UNAVAILABLE = "log is temporarily unavailable"
    SNAPSHOT_OUT_OF_DATE = "snapshot out of date"
    SNAPSHOT_TEMPORARILY_UNAVAILABLE = "snapshot is temporarily unavailable"
    OTHER = "unknown error"


class StorageError(Exception):
    """An error reported by the storage.

    Two storage errors are equal when they are of the same kind, except for
    ``OTHER`` errors, which never compare equal.
    """

    def __init__(self, kind: StorageErrorKind, cause: Optional[BaseException] = None):
        self.kind = kind
        self.cause = cause
        if kind is StorageErrorKind.OTHER:
            message = f"unknown error {cause}"
        else:
            message = kind.value
        super().__init__(message)

    @classmethod
    def other(cls, cause: BaseException) -> "StorageError":
        """Wrap an arbitrary error as a storage error."""
        return cls(StorageErrorKind.OTHER, cause)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StorageError):
            return NotImplemented
        return self.kind is other.kind and self.kind is not StorageErrorKind.OTHER

    def __hash__(self) -> int:
        if self.kind is StorageErrorKind.OTHER:
            return object.__hash__(self)
        return hash(self.kind)


class RaftError(Exception):
    """Base class of all raft errors.

    Errors of the same class compare equal when their identifying data does;
    classes without comparable data never compare equal.
    """

    def _key(self) -> Any:
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RaftError):
            return NotImplemented
        if type(self) is not type(other):
            return False
        key = self._key()
        return key is not None and key == other._key()

    def __hash__(self) -> int:
        key = self._key()
        if key is None:
            return object.__hash__(self)
        return hash((type(self), key))


class _FixedMessageError(RaftError):
    message = ""

    def __init__(self) -> None:
        super().__init__(self.message)

    def _key(self) -> Any:
        return ()


class IoError(RaftError):
    """An I/O error occurred; equality looks only at the kind of the cause."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(str(cause))

    @property
    def kind(self) -> tuple:
        return (type(self.cause), getattr(self.cause, "errno", None))

    def _key(self) -> Any:
        return self.kind


class StoreError(RaftError):
    """A storage error occurred."""

    def __init__(self, error: StorageError):
        self.error = error
        super().__init__(str(error))

    def _key(self) -> Any:
        return self.error


class StepLocalMsgError(_FixedMessageError):
    """A local message cannot be stepped."""

    message = "raft: cannot step raft local message"


class StepPeerNotFoundError(_FixedMessageError):
    """The peer was not found, so the message cannot be stepped."""

    message = "raft: cannot step as peer not found"


class ProposalDroppedError(_FixedMessageError):
    """The proposal was dropped."""

    message = "raft: proposal dropped"


class RequestSnapshotDroppedError(_FixedMessageError):
    """The snapshot request was dropped."""

    message = "raft: request snapshot dropped"


class ConfigInvalidError(RaftError):
    """The configuration is invalid."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def _key(self) -> Any:
        return self.message


class ConfChangeError(RaftError):
    """A configuration change proposal is invalid."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def _key(self) -> Any:
        return self.message


class CodecError(RaftError):
    """A message could not be encoded or decoded."""

    def __init__(self, detail: object):
        self.detail = detail
        super().__init__(f"protobuf codec error {detail!r}")


class ExistsError(RaftError):
    """A node exists in a set it should not be in."""

    def __init__(self, id: int, set_name: str):
        self.id = id
        self.set_name = set_name
        super().__init__(f"The node {id} already exists in the {set_name} set.")


class NotExistsError(RaftError):
    """A node is missing from a set it should be in."""

    def __init__(self, id: int, set_name: str):
        self.id = id
        self.set_name = set_name
        super().__init__(f"The node {id} is not in the {set_name} set.")