"""Validated membership changes for simple and joint consensus."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import AbstractSet, FrozenSet, Iterable, List, Sequence, Set, Tuple

from .errors import ConfChangeError
from .proto import ConfChangeSingle, ConfChangeType, ConfState, new_conf_change_single


class MapChangeType(enum.Enum):
    """How the set of tracked progresses changes."""

    ADD = "add"
    REMOVE = "remove"


MapChange = List[Tuple[int, MapChangeType]]


def _fmt_ids(ids: Iterable[int]) -> str:
    return "(" + " ".join(str(i) for i in sorted(ids)) + ")"


@dataclass
class Configuration:
    """The voters (incoming and outgoing) and learners of a raft group."""

    incoming: Set[int] = field(default_factory=set)
    outgoing: Set[int] = field(default_factory=set)
    learners: Set[int] = field(default_factory=set)
    learners_next: Set[int] = field(default_factory=set)
    auto_leave: bool = False

    def voter_ids(self) -> Set[int]:
        """All voters of the incoming and outgoing configs."""
        return self.incoming | self.outgoing

    def copy(self) -> "Configuration":
        """An independent copy of this configuration."""
        return Configuration(
            incoming=set(self.incoming),
            outgoing=set(self.outgoing),
            learners=set(self.learners),
            learners_next=set(self.learners_next),
            auto_leave=self.auto_leave,
        )

    def __str__(self) -> str:
        text = "voters=" + _fmt_ids(self.incoming)
        if self.outgoing:
            text += "&&" + _fmt_ids(self.outgoing)
        if self.learners:
            text += " learners=" + _fmt_ids(self.learners)
        if self.learners_next:
            text += " learners_next=" + _fmt_ids(self.learners_next)
        if self.auto_leave:
            text += " autoleave"
        return text


def joint(cfg: Configuration) -> bool:
    """Whether the configuration is joint, i.e. has outgoing voters."""
    return bool(cfg.outgoing)


class _IncrChangeMap:
    """Records progress additions and removals on top of a base set."""

    def __init__(self, base: AbstractSet[int]):
        self.base = base
        self.changes: MapChange = []

    def __contains__(self, node_id: int) -> bool:
        for changed_id, kind in reversed(self.changes):
            if changed_id == node_id:
                return kind is MapChangeType.ADD
        return node_id in self.base


def _check_invariants(cfg: Configuration, prs: _IncrChangeMap) -> None:
    for node_id in sorted(cfg.voter_ids()):
        if node_id not in prs:
            raise ConfChangeError(f"no progress for voter {node_id}")
    for node_id in sorted(cfg.learners):
        if node_id not in prs:
            raise ConfChangeError(f"no progress for learner {node_id}")
        if node_id in cfg.outgoing:
            raise ConfChangeError(f"{node_id} is in learners and outgoing voters")
        if node_id in cfg.incoming:
            raise ConfChangeError(f"{node_id} is in learners and incoming voters")
    for node_id in sorted(cfg.learners_next):
        if node_id not in prs:
            raise ConfChangeError(f"no progress for learner(next) {node_id}")
        if node_id not in cfg.outgoing:
            raise ConfChangeError(
                f"{node_id} is in learners_next and outgoing voters"
            )
    if not joint(cfg):
        if cfg.learners_next:
            raise ConfChangeError("learners_next must be empty when not joint")
        if cfg.auto_leave:
            raise ConfChangeError("auto_leave must be false when not joint")


class Changer:
    """Validates and computes configuration changes.

    The changer never modifies the configuration it was given; each
    operation returns a new configuration and the progress changes to apply.
    """

    def __init__(self, conf: Configuration, progress_ids: AbstractSet[int]):
        self.conf = conf
        self.progress_ids: FrozenSet[int] = frozenset(progress_ids)

    def enter_joint(
        self, auto_leave: bool, ccs: Sequence[ConfChangeSingle]
    ) -> Tuple[Configuration, MapChange]:
        """Enter a joint configuration C_{new,old} built by applying ``ccs``."""
        if joint(self.conf):
            raise ConfChangeError("config is already joint")
        cfg, prs = self._check_and_copy()
        if not cfg.incoming:
            raise ConfChangeError("can't make a zero-voter config joint")
        cfg.outgoing |= cfg.incoming
        self._apply(cfg, prs, ccs)
        cfg.auto_leave = auto_leave
        _check_invariants(cfg, prs)
        return cfg, prs.changes

    def leave_joint(self) -> Tuple[Configuration, MapChange]:
        """Leave a joint configuration, promoting staged learners."""
        if not joint(self.conf):
            raise ConfChangeError("can't leave a non-joint config")
        cfg, prs = self._check_and_copy()
        if not cfg.outgoing:
            raise ConfChangeError(f"configuration is not joint: {cfg!r}")
        cfg.learners |= cfg.learners_next
        cfg.learners_next.clear()
        for node_id in sorted(cfg.outgoing):
            if node_id not in cfg.incoming and node_id not in cfg.learners:
                prs.changes.append((node_id, MapChangeType.REMOVE))
        cfg.outgoing.clear()
        cfg.auto_leave = False
        _check_invariants(cfg, prs)
        return cfg, prs.changes

    def simple(self, ccs: Sequence[ConfChangeSingle]) -> Tuple[Configuration, MapChange]:
        """Apply changes that alter the incoming voters by at most one."""
        if joint(self.conf):
            raise ConfChangeError("can't apply simple config change in joint config")
        cfg, prs = self._check_and_copy()
        self._apply(cfg, prs, ccs)
        if len(cfg.incoming ^ self.conf.incoming) > 1:
            raise ConfChangeError(
                "more than one voter changed without entering joint config"
            )
        _check_invariants(cfg, prs)
        return cfg, prs.changes

    def _check_and_copy(self) -> Tuple[Configuration, _IncrChangeMap]:
        prs = _IncrChangeMap(self.progress_ids)
        _check_invariants(self.conf, prs)
        return self.conf.copy(), prs

    def _apply(
        self, cfg: Configuration, prs: _IncrChangeMap, ccs: Sequence[ConfChangeSingle]
    ) -> None:
        for cc in ccs:
            if cc.node_id == 0:
                # A zero id marks a change that was decided not to be applied.
                continue
            if cc.change_type is ConfChangeType.ADD_NODE:
                self._make_voter(cfg, prs, cc.node_id)
            elif cc.change_type is ConfChangeType.ADD_LEARNER_NODE:
                self._make_learner(cfg, prs, cc.node_id)
            else:
                self._remove(cfg, prs, cc.node_id)
        if not cfg.incoming:
            raise ConfChangeError("removed all voters")

    @staticmethod
    def _make_voter(cfg: Configuration, prs: _IncrChangeMap, node_id: int) -> None:
        if node_id not in prs:
            cfg.incoming.add(node_id)
            prs.changes.append((node_id, MapChangeType.ADD))
            return
        cfg.incoming.add(node_id)
        cfg.learners.discard(node_id)
        cfg.learners_next.discard(node_id)

    @staticmethod
    def _make_learner(cfg: Configuration, prs: _IncrChangeMap, node_id: int) -> None:
        if node_id not in prs:
            cfg.learners.add(node_id)
            prs.changes.append((node_id, MapChangeType.ADD))
            return
        if node_id in cfg.learners:
            return
        cfg.incoming.discard(node_id)
        cfg.learners.discard(node_id)
        cfg.learners_next.discard(node_id)
        # A peer still voting in the outgoing config is staged until leave_joint.
        if node_id in cfg.outgoing:
            cfg.learners_next.add(node_id)
        else:
            cfg.learners.add(node_id)

    @staticmethod
    def _remove(cfg: Configuration, prs: _IncrChangeMap, node_id: int) -> None:
        if node_id not in prs:
            return
        cfg.incoming.discard(node_id)
        cfg.learners.discard(node_id)
        cfg.learners_next.discard(node_id)
        # Keep the progress while the peer still votes in the outgoing config.
        if node_id not in cfg.outgoing:
            prs.changes.append((node_id, MapChangeType.REMOVE))


def _to_conf_change_single(
    cs: ConfState,
) -> Tuple[List[ConfChangeSingle], List[ConfChangeSingle]]:
    outgoing = [new_conf_change_single(i, ConfChangeType.ADD_NODE) for i in cs.voters_outgoing]
    incoming = [new_conf_change_single(i, ConfChangeType.REMOVE_NODE) for i in cs.voters_outgoing]
    incoming += [new_conf_change_single(i, ConfChangeType.ADD_NODE) for i in cs.voters]
    incoming += [
        new_conf_change_single(i, ConfChangeType.ADD_LEARNER_NODE)
        for i in [*cs.learners, *cs.learners_next]
    ]
    return outgoing, incoming


def _apply_changes(progress: Set[int], changes: MapChange) -> None:
    for node_id, kind in changes:
        if kind is MapChangeType.ADD:
            progress.add(node_id)
        else:
            progress.discard(node_id)


def restore(conf_state: ConfState) -> Tuple[Configuration, Set[int]]:
    """Build the configuration a conf state describes, starting from empty.

    Returns the configuration and the ids of the peers that are tracked.
    """
    outgoing, incoming = _to_conf_change_single(conf_state)
    conf = Configuration()
    progress: Set[int] = set()

    def step_simple(cc: ConfChangeSingle) -> None:
        nonlocal conf
        conf, changes = Changer(conf, progress).simple([cc])
        _apply_changes(progress, changes)

    if not outgoing:
        for cc in incoming:
            step_simple(cc)
    else:
        for cc in outgoing:
            step_simple(cc)
        conf, changes = Changer(conf, progress).enter_joint(conf_state.auto_leave, incoming)
        _apply_changes(progress, changes)
    return conf, progress