"""Vector-clock engine: computes and stores per-event DAG vectors and fork branches."""

from __future__ import annotations

import struct
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Hashable, Optional, Protocol, Sequence

from .validators import Validators
from .vectors import HighestBeforeSeq, LowestAfterSeq

_U32 = struct.Struct(">I")
_BRANCHES_INFO_KEY = b"c"
_MISSING = object()


class InconsistentStoreError(RuntimeError):
    """Raised when stored vectors or branches disagree with the events added."""


class Event(Protocol):
    """An event of the DAG as the engine sees it."""

    @property
    def id(self) -> Hashable: ...

    @property
    def seq(self) -> int: ...

    @property
    def creator(self) -> int: ...

    @property
    def parents(self) -> Sequence[Hashable]: ...

    @property
    def self_parent(self) -> Optional[Hashable]: ...


class _Store(Protocol):
    def get(self, key: bytes) -> Optional[bytes]: ...

    def put(self, key: bytes, value: bytes) -> None: ...

    def flush(self) -> None: ...

    def not_flushed_pairs(self) -> int: ...

    def drop_not_flushed(self) -> None: ...


def _raise(error: Exception) -> None:
    raise error


def _pack_list(values: Sequence[int]) -> bytes:
    return struct.pack(f">I{len(values)}I", len(values), *values)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._offset = 0

    def u32(self) -> int:
        value = _U32.unpack_from(self._data, self._offset)[0]
        self._offset += 4
        return value

    def u32_list(self) -> list[int]:
        count = self.u32()
        values = list(struct.unpack_from(f">{count}I", self._data, self._offset))
        self._offset += 4 * count
        return values

    def done(self) -> bool:
        return self._offset == len(self._data)


@dataclass
class BranchesInfo:
    """Global branches of each validator; a fork opens a new branch."""

    branch_id_last_seq: list[int] = field(default_factory=list)
    branch_id_creator_idxs: list[int] = field(default_factory=list)
    branch_id_by_creators: list[list[int]] = field(default_factory=list)

    @classmethod
    def initial(cls, validators: Validators) -> BranchesInfo:
        """Return the branches of a fresh epoch: one branch per validator."""
        count = len(validators)
        return cls(
            branch_id_last_seq=[0] * count,
            branch_id_creator_idxs=list(range(count)),
            branch_id_by_creators=[[idx] for idx in range(count)],
        )

    def to_bytes(self) -> bytes:
        """Serialize to a compact big-endian form."""
        parts = [
            _pack_list(self.branch_id_last_seq),
            _pack_list(self.branch_id_creator_idxs),
            _U32.pack(len(self.branch_id_by_creators)),
        ]
        parts.extend(_pack_list(branches) for branches in self.branch_id_by_creators)
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> BranchesInfo:
        """Deserialize the form produced by to_bytes()."""
        reader = _Reader(data)
        try:
            last_seq = reader.u32_list()
            creator_idxs = reader.u32_list()
            by_creators = [reader.u32_list() for _ in range(reader.u32())]
        except struct.error as exc:
            raise InconsistentStoreError("malformed branches info") from exc
        if not reader.done():
            raise InconsistentStoreError("trailing bytes in branches info")
        return cls(last_seq, creator_idxs, by_creators)


@dataclass(frozen=True)
class IndexCacheConfig:
    """Cache sizes of the engine."""

    forkless_cause_pairs: int
    highest_before_seq_size: int
    lowest_after_seq_size: int


@dataclass(frozen=True)
class IndexConfig:
    """Engine configuration."""

    caches: IndexCacheConfig


def default_config(scale: Optional[Callable[[int], int]] = None) -> IndexConfig:
    """Return the default configuration, with cache sizes passed through scale."""
    scale = scale or (lambda value: value)
    return IndexConfig(
        caches=IndexCacheConfig(
            forkless_cause_pairs=scale(20000),
            highest_before_seq_size=scale(160 * 1024),
            lowest_after_seq_size=scale(160 * 1024),
        )
    )


def lite_config() -> IndexConfig:
    """Return a configuration with caches a hundred times smaller, for tests."""
    return default_config(lambda value: value * 1 // 100)


class _WeightedLRU:
    """An LRU cache bounded both by total weight and by entry count."""

    def __init__(self, max_weight: int, max_count: int) -> None:
        self._items: OrderedDict[Hashable, tuple[object, int]] = OrderedDict()
        self._max_weight = max_weight
        self._max_count = max_count
        self._weight = 0

    def get(self, key: Hashable, default: object = None) -> object:
        entry = self._items.get(key, _MISSING)
        if entry is _MISSING:
            return default
        self._items.move_to_end(key)
        return entry[0]

    def add(self, key: Hashable, value: object, weight: int = 1) -> None:
        old = self._items.pop(key, None)
        if old is not None:
            self._weight -= old[1]
        self._items[key] = (value, weight)
        self._weight += weight
        while self._items and (
            self._weight > self._max_weight or len(self._items) > self._max_count
        ):
            _, (_, dropped) = self._items.popitem(last=False)
            self._weight -= dropped

    def purge(self) -> None:
        self._items.clear()
        self._weight = 0

    def __len__(self) -> int:
        return len(self._items)


class _Table:
    def __init__(self, db: _Store, prefix: bytes) -> None:
        self._db = db
        self._prefix = prefix

    def get(self, key: bytes) -> Optional[bytes]:
        return self._db.get(self._prefix + key)

    def put(self, key: bytes, value: bytes) -> None:
        self._db.put(self._prefix + key, value)


class Engine:
    """Computes vector clocks of events, detects forks and stores the results."""

    def __init__(
        self,
        config: Optional[IndexConfig] = None,
        crit: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self.config = config or default_config()
        self.crit = crit or _raise
        self.validators: Optional[Validators] = None
        self.get_event: Callable[[Hashable], Optional[Event]] = lambda _id: None
        self._validator_idxs: dict[int, int] = {}
        self._bi: Optional[BranchesInfo] = None
        self._db: Optional[_Store] = None
        self._event_branch: Optional[_Table] = None
        self._branches_table: Optional[_Table] = None
        self._highest_before_table: Optional[_Table] = None
        self._lowest_after_table: Optional[_Table] = None
        caches = self.config.caches
        self.forkless_cause_cache = _WeightedLRU(
            caches.forkless_cause_pairs, caches.forkless_cause_pairs
        )
        self._hb_cache = _WeightedLRU(
            caches.highest_before_seq_size, caches.highest_before_seq_size
        )
        self._la_cache = _WeightedLRU(
            caches.lowest_after_seq_size, caches.highest_before_seq_size
        )

    def reset(
        self,
        validators: Validators,
        db: _Store,
        get_event: Callable[[Hashable], Optional[Event]],
    ) -> None:
        """Start over with a validator set, a store and an event lookup."""
        self.get_event = get_event
        self._db = db
        self.validators = validators
        self._validator_idxs = validators.idxs()
        self.drop_not_flushed()
        self._event_branch = _Table(db, b"b")
        self._branches_table = _Table(db, b"B")
        self._highest_before_table = _Table(db, b"S")
        self._lowest_after_table = _Table(db, b"s")
        self.forkless_cause_cache.purge()
        self._on_drop_not_flushed()

    def add(self, event: Event) -> None:
        """Compute the event's vectors and store them."""
        self.init_branches_info()
        self._fill_event_vectors(event)

    def flush(self) -> None:
        """Write the branches info and all pending vectors to the store."""
        if self._bi is not None:
            self._branches_table.put(_BRANCHES_INFO_KEY, self._bi.to_bytes())
        self._db.flush()

    def drop_not_flushed(self) -> None:
        """Discard everything not flushed; call it if an event has failed."""
        self._bi = None
        if self._db.not_flushed_pairs() != 0:
            self._db.drop_not_flushed()
            self._on_drop_not_flushed()

    def _on_drop_not_flushed(self) -> None:
        self._hb_cache.purge()
        self._la_cache.purge()

    def init_branches_info(self) -> None:
        """Load the branches info from the store, or start a fresh one."""
        if self._bi is None:
            data = self._branches_table.get(_BRANCHES_INFO_KEY)
            if data is not None:
                self._bi = BranchesInfo.from_bytes(data)
            else:
                self._bi = BranchesInfo.initial(self.validators)

    def at_least_one_fork(self) -> bool:
        """Return True if any fork has been observed globally."""
        return len(self._bi.branch_id_creator_idxs) > len(self.validators)

    def branches_info(self) -> Optional[BranchesInfo]:
        """Return the current branches info."""
        return self._bi

    def _set_fork_detected(self, before: HighestBeforeSeq, branch_id: int) -> None:
        creator_idx = self._bi.branch_id_creator_idxs[branch_id]
        for branch in self._bi.branch_id_by_creators[creator_idx]:
            before.set_fork_detected(branch)

    def _fill_global_branch_id(self, event: Event, me_idx: int) -> int:
        bi = self._bi
        if len(bi.branch_id_creator_idxs) != len(bi.branch_id_last_seq) or len(
            bi.branch_id_creator_idxs
        ) < len(self.validators):
            raise InconsistentStoreError(
                "inconsistent BranchIDCreators len (inconsistent DB)"
            )

        if event.self_parent is None:
            if bi.branch_id_last_seq[me_idx] == 0:
                bi.branch_id_last_seq[me_idx] = event.seq
                return me_idx
        else:
            parent_branch = self.get_event_branch_id(event.self_parent)
            if bi.branch_id_last_seq[parent_branch] + 1 == event.seq:
                bi.branch_id_last_seq[parent_branch] = event.seq
                return parent_branch

        # A new fork is observed globally: open a new branch for it.
        bi.branch_id_last_seq.append(event.seq)
        bi.branch_id_creator_idxs.append(me_idx)
        new_branch = len(bi.branch_id_last_seq) - 1
        bi.branch_id_by_creators[me_idx].append(new_branch)
        return new_branch

    def _fill_event_vectors(self, event: Event) -> None:
        bi = self._bi
        try:
            me_idx = self._validator_idxs[event.creator]
        except KeyError:
            raise ValueError(f"unknown creator {event.creator}") from None
        size = len(bi.branch_id_creator_idxs)
        before = HighestBeforeSeq(size)
        after = LowestAfterSeq(size)

        me_branch = self._fill_global_branch_id(event, me_idx)

        parent_vectors = []
        for parent in event.parents:
            vector = self.get_highest_before(parent)
            if vector is None:
                raise InconsistentStoreError(
                    "processed out of order, parent not found (inconsistent DB), "
                    f"parent={parent}"
                )
            parent_vectors.append(vector)

        after.init_with_event(me_branch, event)
        before.init_with_event(me_branch, event)

        for vector in parent_vectors:
            before.collect_from(vector, len(bi.branch_id_creator_idxs))

        if self.at_least_one_fork():
            self._detect_forks(before)

        def on_walk(walk_id: Hashable) -> bool:
            lowest_after = self.get_lowest_after(walk_id)
            if lowest_after.visit(me_branch, event):
                self.set_lowest_after(walk_id, lowest_after)
                return True
            return False

        try:
            self.dfs_subgraph(event, on_walk)
        except InconsistentStoreError as exc:
            self.crit(exc)

        self.set_highest_before(event.id, before)
        self.set_lowest_after(event.id, after)
        self.set_event_branch_id(event.id, me_branch)

    def _detect_forks(self, before: HighestBeforeSeq) -> None:
        by_creators = self._bi.branch_id_by_creators
        creators = range(len(self.validators))

        # If one branch observes a fork, all branches of its creator do.
        for creator in creators:
            branches = by_creators[creator]
            if len(branches) > 1 and any(before.is_fork_detected(b) for b in branches):
                self._set_fork_detected(before, creator)

        # Overlapping branches of the same creator mean a fork not yet marked.
        for creator in creators:
            if before.is_fork_detected(creator):
                continue
            branches = by_creators[creator]
            if any(
                a != b
                and not before.is_empty(a)
                and not before.is_empty(b)
                and before.min_seq(a) <= before.seq(b)
                and before.min_seq(b) <= before.seq(a)
                for a in branches
                for b in branches
            ):
                self._set_fork_detected(before, creator)

    def get_merged_highest_before(self, event_id: Hashable) -> Optional[HighestBeforeSeq]:
        """Return the highest-before vector with branches merged per validator."""
        self.init_branches_info()
        if not self.at_least_one_fork():
            return self.get_highest_before(event_id)
        scattered = self.get_highest_before(event_id)
        if scattered is None:
            return None
        merged = HighestBeforeSeq(len(self.validators))
        for creator_idx, branches in enumerate(self._bi.branch_id_by_creators):
            merged.gather_from(creator_idx, scattered, branches)
        return merged

    def get_highest_before(self, event_id: Hashable) -> Optional[HighestBeforeSeq]:
        """Read an event's highest-before vector, or None if unknown."""
        cached = self._hb_cache.get(event_id)
        if cached is not None:
            return cached
        data = self._highest_before_table.get(bytes(event_id))
        if data is None:
            return None
        vector = HighestBeforeSeq.from_bytes(data)
        self._hb_cache.add(event_id, vector, len(vector))
        return vector

    def get_lowest_after(self, event_id: Hashable) -> Optional[LowestAfterSeq]:
        """Read an event's lowest-after vector, or None if unknown."""
        cached = self._la_cache.get(event_id)
        if cached is not None:
            return cached
        data = self._lowest_after_table.get(bytes(event_id))
        if data is None:
            return None
        vector = LowestAfterSeq.from_bytes(data)
        self._la_cache.add(event_id, vector, len(vector))
        return vector

    def set_highest_before(self, event_id: Hashable, vector: HighestBeforeSeq) -> None:
        """Store an event's highest-before vector."""
        self._highest_before_table.put(bytes(event_id), bytes(vector))
        self._hb_cache.add(event_id, vector, len(vector))

    def set_lowest_after(self, event_id: Hashable, vector: LowestAfterSeq) -> None:
        """Store an event's lowest-after vector."""
        self._lowest_after_table.put(bytes(event_id), bytes(vector))
        self._la_cache.add(event_id, vector, len(vector))

    def set_event_branch_id(self, event_id: Hashable, branch_id: int) -> None:
        """Store the global branch ID of an event."""
        self._event_branch.put(bytes(event_id), _U32.pack(branch_id))

    def get_event_branch_id(self, event_id: Hashable) -> int:
        """Read the global branch ID of an event."""
        data = self._event_branch.get(bytes(event_id))
        if data is None:
            self.crit(
                InconsistentStoreError(
                    "failed to read event's branch ID (inconsistent DB)"
                )
            )
            return 0
        return _U32.unpack_from(data)[0]

    def dfs_subgraph(self, head: Event, walk: Callable[[Hashable], bool]) -> None:
        """Walk the events observed by head, excluding head, depth first.

        walk returns whether to go deeper; it may be called twice for one event.
        """
        stack = list(head.parents)
        while stack:
            current = stack.pop()
            if not walk(current):
                continue
            event = self.get_event(current)
            if event is None:
                raise InconsistentStoreError(f"event not found {current}")
            stack.extend(event.parents)