# raftlite

Building blocks for the Raft consensus algorithm: node configuration and its
validation, error types, protocol types for membership changes and
snapshots, validated membership changes with joint consensus, and a small
runner for data-driven test files.

## Install

```
pip install raftlite
pip install "raftlite[test]"   # with pytest, to run the test suite
```

The package has no runtime dependencies.

## Modules

- `raftlite.config`: `Config` is a dataclass of a node's Raft parameters
  (election and heartbeat ticks, message limits, `pre_vote`, `check_quorum`,
  `read_only_option` and so on). `min_election_timeout()` and
  `max_election_timeout()` give the effective election range, and
  `validate()` raises `ConfigInvalidError` when the parameters do not make
  sense. `ReadOnlyOption` is `SAFE` or `LEASE_BASED`.
- `raftlite.errors`: `RaftError` and its subclasses (`ConfigInvalidError`,
  `ConfChangeError`, `StoreError`, `IoError`, `ProposalDroppedError`, ...),
  and `StorageError` with its `StorageErrorKind`. Errors of the same class
  compare equal when their identifying data does.
- `raftlite.proto`: the dataclasses `ConfState`, `ConfChange`,
  `ConfChangeV2`, `ConfChangeSingle`, `Snapshot` and `SnapshotMetadata`, the
  enums `ConfChangeType` and `ConfChangeTransition`, and the helpers
  `parse_conf_change`, `stringify_conf_change`, `new_conf_change_single` and
  `conf_state_eq` (order-insensitive comparison of conf states).
- `raftlite.changer`: `Changer` computes configuration changes (`simple`,
  `enter_joint`, `leave_joint`) without modifying its input, returning a new
  `Configuration` and a list of `(node_id, MapChangeType)` progress changes.
  `joint(cfg)` tells whether a configuration has outgoing voters, and
  `restore(conf_state)` rebuilds the configuration and tracked peer ids a
  `ConfState` describes. Invalid changes raise `ConfChangeError`.
- `raftlite.datadriven.lineparser`: `parse_line`, `split_directives`,
  `CmdArg`, `TestData` and `DirectiveError`.
- `raftlite.datadriven.runner`: `run_test`, `run_text`, `walk`,
  `collect_paths`, `has_blank_line` and `TestDataReader`.

## Membership changes

```python
from raftlite.changer import Changer, Configuration
from raftlite.proto import parse_conf_change

changer = Changer(Configuration(), set())
cfg, changes = changer.simple(parse_conf_change("v1"))
print(cfg)        # voters=(1)
print(changes)    # [(1, <MapChangeType.ADD: 'add'>)]
```

Operation strings use `vN` to make node N a voter, `lN` to make it a learner
and `rN` to remove it; a malformed token raises `ValueError`:

```python
from raftlite.proto import parse_conf_change, stringify_conf_change

ccs = parse_conf_change("v1 l2 r3")
assert stringify_conf_change(ccs) == "v1 l2 r3"
```

Changing more than one voter at once requires `enter_joint`, followed later
by `leave_joint`:

```python
changer = Changer(Configuration(incoming={1}), {1})
cfg, changes = changer.enter_joint(False, parse_conf_change("v2 v3"))
print(cfg)        # voters=(1 2 3)&&(1)
cfg, changes = Changer(cfg, {1, 2, 3}).leave_joint()
print(cfg)        # voters=(1 2 3)
```

## Data-driven tests

A test file holds directives, each followed by a `----` line and the
expected output. `run_test` calls a handler with each case's `TestData` and
raises `AssertionError` when the output differs:

```python
from raftlite.datadriven.runner import run_test

def handle(data):
    if data.cmd == "echo":
        return data.input
    raise ValueError(data.cmd)

run_test("testdata/echo", handle, rewrite=False)
```

The path may be a single file or a directory, in which case every entry in it
is run. With `rewrite=True` the runner writes the actual outputs back into the
files in place of the expected sections. `run_text` does the same on a string
and returns the rewritten text.

## What this package does not do

It has no Raft node: there is no log, no storage backend, no leader
election, no message handling and no network. `Changer` works out
membership changes and `restore` rebuilds a configuration, but applying the
returned progress changes to replication state is left to the caller.
There is no command-line program.

## Running the tests

```
pytest
```