"""Raft protocol messages for configuration changes and snapshots."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

_U64_MAX = 2**64 - 1
_NODE_ID_RE = re.compile(r"\+?[0-9]+")


class ConfChangeType(enum.IntEnum):
    """The kind of a single membership change."""

    ADD_NODE = 0
    REMOVE_NODE = 1
    ADD_LEARNER_NODE = 2


class ConfChangeTransition(enum.IntEnum):
    """How a joint configuration is entered and left."""

    AUTO = 0
    IMPLICIT = 1
    EXPLICIT = 2


@dataclass
class ConfState:
    """The membership of a raft group."""

    voters: List[int] = field(default_factory=list)
    learners: List[int] = field(default_factory=list)
    voters_outgoing: List[int] = field(default_factory=list)
    learners_next: List[int] = field(default_factory=list)
    auto_leave: bool = False

    @staticmethod
    def from_members(voters: Iterable[int], learners: Iterable[int]) -> "ConfState":
        """Build a conf state from voters and learners."""
        return ConfState(voters=list(voters), learners=list(learners))


@dataclass
class ConfChangeSingle:
    """One membership change for one node."""

    change_type: ConfChangeType = ConfChangeType.ADD_NODE
    node_id: int = 0


@dataclass
class ConfChangeV2:
    """A set of membership changes applied together."""

    transition: ConfChangeTransition = ConfChangeTransition.AUTO
    changes: List[ConfChangeSingle] = field(default_factory=list)
    context: bytes = b""

    def into_v2(self) -> "ConfChangeV2":
        return self

    def enter_joint(self) -> Optional[bool]:
        """Whether the change uses joint consensus.

        Returns None if it does not, otherwise whether the joint state is
        left automatically.
        """
        if self.transition is not ConfChangeTransition.AUTO or len(self.changes) > 1:
            return self.transition is not ConfChangeTransition.EXPLICIT
        return None

    def leave_joint(self) -> bool:
        """Whether the change leaves a joint configuration."""
        return self.transition is ConfChangeTransition.AUTO and not self.changes


@dataclass
class ConfChange:
    """A legacy single membership change."""

    change_type: ConfChangeType = ConfChangeType.ADD_NODE
    node_id: int = 0
    context: bytes = b""
    id: int = 0

    def into_v2(self) -> ConfChangeV2:
        """Convert into the multi-change form."""
        return ConfChangeV2(
            changes=[new_conf_change_single(self.node_id, self.change_type)],
            context=self.context,
        )


@dataclass
class SnapshotMetadata:
    """Where a snapshot sits in the log and the membership it captures."""

    conf_state: ConfState = field(default_factory=ConfState)
    index: int = 0
    term: int = 0


@dataclass
class Snapshot:
    """A snapshot of the state machine."""

    data: bytes = b""
    metadata: SnapshotMetadata = field(default_factory=SnapshotMetadata)

    def is_empty(self) -> bool:
        """A snapshot is empty when its index is zero."""
        return self.metadata.index == 0


def new_conf_change_single(node_id: int, change_type: ConfChangeType) -> ConfChangeSingle:
    """Create a single change."""
    return ConfChangeSingle(change_type=change_type, node_id=node_id)


_TOKEN_TYPES = {
    "v": ConfChangeType.ADD_NODE,
    "l": ConfChangeType.ADD_LEARNER_NODE,
    "r": ConfChangeType.REMOVE_NODE,
}
_TOKEN_CHARS = {kind: char for char, kind in _TOKEN_TYPES.items()}


def _parse_node_id(tok: str) -> int:
    digits = tok[1:]
    if not _NODE_ID_RE.fullmatch(digits):
        reason = "cannot parse integer from empty string" if not digits else (
            "invalid digit found in string"
        )
        raise ValueError(f"parse token {tok} fail: {reason}")
    value = int(digits)
    if value > _U64_MAX:
        raise ValueError(f"parse token {tok} fail: number too large to fit in target type")
    return value


def parse_conf_change(s: str) -> List[ConfChangeSingle]:
    """Parse space-separated operations: vN (voter), lN (learner), rN (remove)."""
    changes = []
    for tok in s.split():
        if len(tok.encode()) < 2 or tok[0] not in _TOKEN_TYPES:
            raise ValueError(f"unknown token {tok}")
        changes.append(new_conf_change_single(_parse_node_id(tok), _TOKEN_TYPES[tok[0]]))
    return changes


def stringify_conf_change(ccs: Sequence[ConfChangeSingle]) -> str:
    """The inverse of parse_conf_change."""
    return " ".join(f"{_TOKEN_CHARS[cc.change_type]}{cc.node_id}" for cc in ccs)


def conf_state_eq(lhs: ConfState, rhs: ConfState) -> bool:
    """Whether two conf states describe the same configuration, ignoring order."""
    return (
        set(lhs.voters) == set(rhs.voters)
        and set(lhs.learners) == set(rhs.learners)
        and set(lhs.voters_outgoing) == set(rhs.voters_outgoing)
        and set(lhs.learners_next) == set(rhs.learners_next)
        and lhs.auto_leave == rhs.auto_leave
    )