import pytest

from raftlite.config import NO_LIMIT, Config, ReadOnlyOption
from raftlite.errors import ConfigInvalidError


def test_defaults():
    cfg = Config()
    assert cfg.max_inflight_msgs == 256
    assert cfg.election_tick == 10 * cfg.heartbeat_tick
    assert cfg.max_uncommitted_size == NO_LIMIT
    assert cfg.max_committed_size_per_ready == NO_LIMIT
    assert cfg.read_only_option is ReadOnlyOption.SAFE


def test_election_timeouts_fall_back_to_election_tick():
    cfg = Config(id=1, election_tick=10)
    assert cfg.min_election_timeout() == cfg.election_tick
    assert cfg.max_election_timeout() == 2 * cfg.election_tick


def test_explicit_election_timeouts():
    cfg = Config(id=1, election_tick=10, min_election_tick=12, max_election_tick=30)
    assert cfg.min_election_timeout() == 12
    assert cfg.max_election_timeout() == 30


def test_valid_config():
    cfg = Config(id=1)
    assert cfg.validate() is None
    assert cfg.min_election_timeout() < cfg.max_election_timeout()


def test_invalid_id():
    with pytest.raises(ConfigInvalidError) as info:
        Config().validate()
    assert str(info.value) == "invalid node id"


def test_zero_heartbeat():
    with pytest.raises(ConfigInvalidError, match="heartbeat tick must greater than 0"):
        Config(id=1, heartbeat_tick=0).validate()


def test_election_not_greater_than_heartbeat():
    with pytest.raises(
        ConfigInvalidError, match="election tick must be greater than heartbeat tick"
    ):
        Config(id=1, election_tick=3, heartbeat_tick=3).validate()


def test_min_election_tick_too_small():
    with pytest.raises(ConfigInvalidError) as info:
        Config(id=1, election_tick=10, min_election_tick=5).validate()
    assert str(info.value) == "min election tick 5 must not be less than election_tick 10"


def test_min_not_less_than_max():
    with pytest.raises(ConfigInvalidError) as info:
        Config(id=1, election_tick=10, min_election_tick=15, max_election_tick=15).validate()
    assert str(info.value) == "min election tick 15 should be less than max election tick 15"


def test_zero_inflight():
    with pytest.raises(ConfigInvalidError, match="max inflight messages"):
        Config(id=1, max_inflight_msgs=0).validate()


def test_lease_based_requires_check_quorum():
    with pytest.raises(ConfigInvalidError, match="requires check_quorum"):
        Config(id=1, read_only_option=ReadOnlyOption.LEASE_BASED).validate()
    cfg = Config(id=1, read_only_option=ReadOnlyOption.LEASE_BASED, check_quorum=True)
    assert cfg.validate() is None


def test_uncommitted_smaller_than_msg_size():
    with pytest.raises(
        ConfigInvalidError,
        match="max uncommitted size should greater than max_size_per_msg",
    ):
        Config(id=1, max_uncommitted_size=10, max_size_per_msg=20).validate()