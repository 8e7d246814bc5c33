import pytest

from raftlite.changer import (
    Changer,
    Configuration,
    MapChangeType,
    joint,
    restore,
)
from raftlite.errors import ConfChangeError
from raftlite.proto import ConfState, conf_state_eq, parse_conf_change


def _track(progress, changes):
    result = set(progress)
    for node_id, kind in changes:
        if kind is MapChangeType.ADD:
            result.add(node_id)
        else:
            result.discard(node_id)
    return result


def _base(voters):
    return Configuration(incoming=set(voters)), set(voters)


def test_simple_add_first_voter():
    cfg, changes = Changer(Configuration(), set()).simple(parse_conf_change("v1"))
    assert cfg.incoming == {1}
    assert changes == [(1, MapChangeType.ADD)]
    assert not joint(cfg)


def test_simple_does_not_mutate_input():
    conf, prs = _base([1])
    Changer(conf, prs).simple(parse_conf_change("v2"))
    assert conf.incoming == {1}


def test_simple_rejects_two_voter_changes():
    conf, prs = _base([1])
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, prs).simple(parse_conf_change("v2 v3"))
    assert str(exc.value) == "more than one voter changed without entering joint config"


def test_simple_remove_all_voters():
    conf, prs = _base([1])
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, prs).simple(parse_conf_change("r1"))
    assert str(exc.value) == "removed all voters"


def test_simple_ignores_zero_node_id():
    conf, prs = _base([1])
    cfg, changes = Changer(conf, prs).simple(parse_conf_change("v0 l0"))
    assert cfg == conf
    assert changes == []


def test_demote_voter_to_learner():
    conf, prs = _base([1, 2])
    cfg, changes = Changer(conf, prs).simple(parse_conf_change("l2"))
    assert cfg.incoming == {1}
    assert cfg.learners == {2}
    assert changes == []


def test_enter_joint_requires_voters():
    with pytest.raises(ConfChangeError) as exc:
        Changer(Configuration(), set()).enter_joint(False, parse_conf_change("v1"))
    assert str(exc.value) == "can't make a zero-voter config joint"


def test_enter_and_leave_joint():
    conf, prs = _base([1, 2, 3])
    cfg, changes = Changer(conf, prs).enter_joint(True, parse_conf_change("r3 v4 l2"))
    assert joint(cfg)
    assert cfg.outgoing == {1, 2, 3}
    assert cfg.incoming == {1, 4}
    assert cfg.learners_next == {2}
    assert cfg.auto_leave is True
    prs = _track(prs, changes)
    assert prs == {1, 2, 3, 4}

    with pytest.raises(ConfChangeError) as exc:
        Changer(cfg, prs).enter_joint(False, parse_conf_change("v5"))
    assert str(exc.value) == "config is already joint"
    with pytest.raises(ConfChangeError) as exc:
        Changer(cfg, prs).simple(parse_conf_change("v5"))
    assert str(exc.value) == "can't apply simple config change in joint config"

    left, changes = Changer(cfg, prs).leave_joint()
    assert not joint(left)
    assert left.learners == {2}
    assert left.learners_next == set()
    assert left.auto_leave is False
    assert changes == [(3, MapChangeType.REMOVE)]


def test_leave_joint_when_not_joint():
    conf, prs = _base([1])
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, prs).leave_joint()
    assert str(exc.value) == "can't leave a non-joint config"


def test_invariant_violation_in_input():
    conf = Configuration(incoming={1})
    with pytest.raises(ConfChangeError) as exc:
        Changer(conf, set()).simple(parse_conf_change("v2"))
    assert str(exc.value) == "no progress for voter 1"


def test_restore_worked_example():
    cs = ConfState(
        voters=[1, 2, 3], learners=[5], voters_outgoing=[1, 2, 4, 6], learners_next=[4]
    )
    cfg, prs = restore(cs)
    assert cfg.incoming == {1, 2, 3}
    assert cfg.outgoing == {1, 2, 4, 6}
    assert cfg.learners == {5}
    assert cfg.learners_next == {4}
    assert prs == {1, 2, 3, 4, 5, 6}

    left, changes = Changer(cfg, prs).leave_joint()
    assert left.learners == {4, 5}
    assert changes == [(6, MapChangeType.REMOVE)]


@pytest.mark.parametrize(
    "cs",
    [
        ConfState(voters=[1, 2, 3]),
        ConfState(voters=[1, 2], learners=[3, 4]),
        ConfState(voters=[1, 2], voters_outgoing=[1, 3], learners_next=[3], auto_leave=True),
        ConfState(voters=[5], learners=[7], voters_outgoing=[5, 6]),
    ],
)
def test_restore_round_trip(cs):
    cfg, prs = restore(cs)
    back = ConfState(
        voters=sorted(cfg.incoming),
        learners=sorted(cfg.learners),
        voters_outgoing=sorted(cfg.outgoing),
        learners_next=sorted(cfg.learners_next),
        auto_leave=cfg.auto_leave,
    )
    assert conf_state_eq(cs, back)
    assert prs == cfg.voter_ids() | cfg.learners | cfg.learners_next


def test_configuration_str():
    cfg = Configuration(
        incoming={1, 2, 3}, outgoing={1, 2, 4, 6}, learners={5}, learners_next={4}
    )
    assert str(cfg) == "voters=(1 2 3)&&(1 2 4 6) learners=(5) learners_next=(4)"