# dagconsensus

Building blocks for DAG-based Byzantine fault tolerant consensus, in pure Python
with no third-party dependencies.

| Module | What it holds |
| --- | --- |
| `dagconsensus.validators` | `Validators`, `ValidatorsBuilder`, `ValidatorsBigBuilder`, `WeightCounter`, `equal_weight_validators`, `array_to_validators`, `WeightOverflowError` |
| `dagconsensus.vectors` | `HighestBeforeSeq`, `LowestAfterSeq`, `BranchSeq`, `FORK_DETECTED_SEQ` |
| `dagconsensus.engine` | `Engine`, `BranchesInfo`, `IndexConfig`, `IndexCacheConfig`, `default_config`, `lite_config`, `InconsistentStoreError` |
| `dagconsensus.forkless` | `VectorIndex`: an `Engine` that answers forkless-cause queries |
| `dagconsensus.dagidx` | `DagIndexer`, `HighestBeforeView`, `SeqView`: read-only views over a `VectorIndex` |
| `dagconsensus.vecflushable` | `VecFlushable`, `wrap`, `MemoryStore`, `StoreBatch`, `StoreClosedError` |
| `dagconsensus.hashing` | `Hash`, `ZERO`, `bytes_to_hash`, `big_to_hash`, `hex_to_hash`, `hashes_to_string` |
| `dagconsensus.indices` | `IndexKind` (big-endian encoding of epochs, sequence numbers, frames, …), `max_lamport` |
| `dagconsensus.byteutils` | fixed-width 16/32/64-bit big- and little-endian encoding |
| `dagconsensus.names` | process-wide aliases for nodes and events, and `Metric` |
| `dagconsensus.textcolumns` | `text_columns`, side-by-side text layout |

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Validator sets

```python
from dagconsensus.validators import ValidatorsBuilder

builder = ValidatorsBuilder()
builder.set(1, 10)
builder.set(2, 20)
builder.set(3, 30)
validators = builder.build()

validators.total_weight()   # 60
validators.quorum()         # 41  (total * 2 // 3 + 1)
validators.sorted_ids()     # (3, 2, 1): heaviest first, ties by ascending id

counter = validators.new_counter()
counter.count(3)
counter.count(2)
counter.has_quorum()        # True
```

Setting a weight of zero removes a validator. Building a set whose total weight
exceeds `0xFFFFFFFF // 2` raises `WeightOverflowError`.

`ValidatorsBigBuilder` accepts integers of any size (`None` or zero removes an
entry) and, when building, shifts every weight right by the same number of bits
so that the total fits in 31 bits.

## Vector clocks and forkless cause

`VectorIndex` computes, for every event added, a highest-before vector (per
branch, the highest and lowest sequence numbers the event observes) and a
lowest-after vector (per branch, the lowest event that observes it). Forks are
tracked by opening a new global branch whenever a validator's event does not
continue its self-parent's branch; a fork observed by an event is recorded with
the `FORK_DETECTED_SEQ` marker.

Events are any objects with `id`, `seq`, `creator`, `parents` and `self_parent`
attributes. Event ids must be hashable and convertible with `bytes()`, as
`Hash` is. `parents` includes the self-parent; `self_parent` is `None` for a
validator's first event. Events must be added parents first.

```python
from dataclasses import dataclass, field
from typing import Optional

from dagconsensus.forkless import VectorIndex
from dagconsensus.engine import lite_config
from dagconsensus.hashing import Hash, bytes_to_hash
from dagconsensus.validators import equal_weight_validators
from dagconsensus.vecflushable import MemoryStore, wrap


@dataclass(frozen=True)
class Event:
    id: Hash
    seq: int
    creator: int
    parents: tuple = ()
    self_parent: Optional[Hash] = None


events = {}
index = VectorIndex(lite_config())
index.reset(equal_weight_validators([1, 2, 3], 1), wrap(MemoryStore(), 100_000), events.get)

a1 = Event(bytes_to_hash(b"a1"), 1, 1)
b1 = Event(bytes_to_hash(b"b1"), 1, 2)
a2 = Event(bytes_to_hash(b"a2"), 2, 1, (a1.id, b1.id), a1.id)
for event in (a1, b1, a2):
    events[event.id] = event
    index.add(event)
    index.flush()

index.forkless_cause(a2.id, b1.id)   # does a2 forkless-cause b1?
```

`forkless_cause(a_id, b_id)` is true when validators holding a quorum of weight
have a branch on which A's highest-before reaches B's lowest-after, and A sees
no fork by B's creator. Results are cached.

`forkless_cause_progress(a_id, b_id, candidate_parents, chosen_parents)` returns
a `WeightCounter` for A plus the chosen parents, and a list with one counter per
candidate parent, to help choose parents for a new event.

Other `Engine` methods: `get_highest_before`, `get_lowest_after`,
`get_merged_highest_before` (branches folded back to one entry per validator),
`get_event_branch_id`, `at_least_one_fork`, `branches_info`, `dfs_subgraph`,
`flush` and `drop_not_flushed`. By default an inconsistency in the store raises
`InconsistentStoreError`; pass `crit=` to the constructor to handle it instead.

`DagIndexer(index)` exposes only `forkless_cause` and `get_merged_highest_before`,
the latter as a `HighestBeforeView` of `SeqView` entries.

## Buffered storage

```python
from dagconsensus.vecflushable import MemoryStore, wrap

db = wrap(MemoryStore(), 100_000, 100 * 1024)
db.put(b"key", b"value")
db.flush()
db.get(b"key")   # b"value"
```

Writes stay pending until `flush()`; `drop_not_flushed()` discards them. Flushed
pairs stay in memory until their estimated size (100 bytes plus key and value
length per pair) exceeds the size limit, then are written to the parent store in
batches of about `batch_size` bytes. Using the store after `close()` raises
`StoreClosedError`. Any parent with `get`, `put`, `close` and `new_batch` works.

## Text columns

```python
from dagconsensus.textcolumns import text_columns

print(text_columns("Alice\nBob\nCharlie", "red\ngreen\nblue"))
```

Each column is padded to its widest line and followed by a tab; each row ends
with a newline, and a final row of padding closes the output.

## What the package does not do

- It does not create events, build DAGs or run a consensus protocol; it only
  indexes events that you supply.
- The only store included is the in-memory `MemoryStore`; there is no on-disk
  database. Persistence requires supplying your own store object.
- There is no command-line program.