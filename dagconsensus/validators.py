"""Weighted validator sets, their builders and quorum weight counters."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

MAX_UINT32 = 0xFFFFFFFF
_TOTAL_WEIGHT_LIMIT = MAX_UINT32 // 2
_WEIGHT_BITS = 31


class WeightOverflowError(OverflowError):
    """Raised when the total weight of a validator set is too large."""


def _check_weight(weight: int) -> int:
    if not 0 <= weight <= MAX_UINT32:
        raise ValueError(f"weight out of range: {weight}")
    return weight


class ValidatorsBuilder(dict):
    """A mutable mapping of validator ID to weight, used to build Validators."""

    def set(self, validator_id: int, weight: int) -> None:
        """Set a validator's weight; a weight of zero removes it."""
        if _check_weight(weight) == 0:
            self.pop(validator_id, None)
        else:
            self[validator_id] = weight

    def build(self) -> Validators:
        """Build a read-only Validators object from the current content."""
        return Validators(self)


class ValidatorsBigBuilder(dict):
    """A mutable mapping of validator ID to arbitrarily large weight."""

    def set(self, validator_id: int, weight: int | None) -> None:
        """Set a validator's weight; None or zero removes it."""
        if not weight:
            self.pop(validator_id, None)
        else:
            self[validator_id] = weight

    def total_weight(self) -> int:
        """Return the sum of all weights."""
        return sum(self.values())

    def build(self) -> Validators:
        """Build Validators, downscaling weights by a power of two to fit 31 bits."""
        total_bits = self.total_weight().bit_length()
        shift = max(0, total_bits - _WEIGHT_BITS)
        builder = ValidatorsBuilder()
        for validator_id, weight in self.items():
            builder.set(validator_id, (weight >> shift) & MAX_UINT32)
        return builder.build()


class Validators:
    """A read-only group of validators with weights, in deterministic order.

    Validators are ordered by weight descending, then by ID ascending.
    """

    __slots__ = ("_values", "_indexes", "_ids", "_weights", "_total_weight")

    def __init__(self, values: Mapping[int, int] | None = None) -> None:
        self._values: dict[int, int] = {
            vid: _check_weight(w) for vid, w in (values or {}).items() if w != 0
        }
        ordered = sorted(self._values.items(), key=lambda item: (-item[1], item[0]))
        self._ids = tuple(vid for vid, _ in ordered)
        self._weights = tuple(w for _, w in ordered)
        self._indexes = {vid: idx for idx, vid in enumerate(self._ids)}
        total = sum(self._weights)
        if total > _TOTAL_WEIGHT_LIMIT:
            raise WeightOverflowError("validators weight overflow")
        self._total_weight = total

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Validators):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(tuple(zip(self._ids, self._weights)))

    def get(self, validator_id: int) -> int:
        """Return the weight of a validator, or 0 if it is not in the group."""
        return self._values.get(validator_id, 0)

    def get_idx(self, validator_id: int) -> int:
        """Return the position of a validator in the deterministic order."""
        try:
            return self._indexes[validator_id]
        except KeyError:
            raise KeyError(f"unknown validator {validator_id}") from None

    def get_id(self, index: int) -> int:
        """Return the validator ID at a position."""
        return self._ids[index]

    def get_weight_by_idx(self, index: int) -> int:
        """Return the weight of the validator at a position."""
        return self._weights[index]

    def exists(self, validator_id: int) -> bool:
        """Return True if the validator is in the group."""
        return validator_id in self._values

    def ids(self) -> tuple[int, ...]:
        """Return the validator IDs."""
        return self._ids

    def sorted_ids(self) -> tuple[int, ...]:
        """Return the validator IDs in deterministic order."""
        return self._ids

    def sorted_weights(self) -> tuple[int, ...]:
        """Return the weights in the same order as sorted_ids()."""
        return self._weights

    def idxs(self) -> dict[int, int]:
        """Return a mapping of validator ID to position."""
        return dict(self._indexes)

    def copy(self) -> Validators:
        """Return an independent copy."""
        return Validators(self._values)

    def builder(self) -> ValidatorsBuilder:
        """Return a mutable copy of the content."""
        return ValidatorsBuilder(self._values)

    def quorum(self) -> int:
        """Return the weight needed for a quorum: more than two thirds."""
        return self._total_weight * 2 // 3 + 1

    def total_weight(self) -> int:
        """Return the sum of all weights."""
        return self._total_weight

    def new_counter(self) -> WeightCounter:
        """Return a fresh weight counter for this group."""
        return WeightCounter(self)

    def __str__(self) -> str:
        return ",".join(f"[{vid}:{w}]" for vid, w in zip(self._ids, self._weights))

    def __repr__(self) -> str:
        return f"Validators({self})"


class WeightCounter:
    """Accumulates the weight of distinct validators towards a quorum."""

    __slots__ = ("_validators", "_already", "_quorum", "_sum")

    def __init__(self, validators: Validators) -> None:
        self._validators = validators
        self._already = [False] * len(validators)
        self._quorum = validators.quorum()
        self._sum = 0

    def count(self, validator_id: int) -> bool:
        """Count a validator; return True if it had not been counted before."""
        return self.count_by_idx(self._validators.get_idx(validator_id))

    def count_by_idx(self, index: int) -> bool:
        """Count a validator by position; return True if it was new."""
        if self._already[index]:
            return False
        self._already[index] = True
        self._sum += self._validators.get_weight_by_idx(index)
        return True

    def has_quorum(self) -> bool:
        """Return True once the counted weight reaches the quorum."""
        return self._sum >= self._quorum

    def total(self) -> int:
        """Return the sum of the counted weights."""
        return self._sum

    def num_counted(self) -> int:
        """Return the number of distinct validators counted."""
        return sum(self._already)


def equal_weight_validators(ids: Iterable[int], weight: int) -> Validators:
    """Build Validators giving every ID the same weight."""
    builder = ValidatorsBuilder()
    for validator_id in ids:
        builder.set(validator_id, weight)
    return builder.build()


def array_to_validators(ids: Sequence[int], weights: Sequence[int]) -> Validators:
    """Build Validators from parallel sequences of IDs and weights."""
    if len(weights) < len(ids):
        raise ValueError("fewer weights than validator IDs")
    builder = ValidatorsBuilder()
    for validator_id, weight in zip(ids, weights):
        builder.set(validator_id, weight)
    return builder.build()