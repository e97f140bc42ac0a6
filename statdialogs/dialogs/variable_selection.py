"""Partition of a dialog's variables into the available, test, control and grouping lists."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..core.variables import Variable

logger = logging.getLogger(__name__)


class Bucket(str, Enum):
    AVAILABLE = "available"
    TEST = "test"
    CONTROL = "control"
    GROUPING = "grouping"


@dataclass(frozen=True)
class Highlight:
    temp_id: str
    source: Bucket


MovePredicate = Callable[[Variable, Bucket], bool]


class VariablePartition:
    """Keeps every variable in exactly one bucket.

    ``accepts`` lets a dialog refuse moves, e.g. nominal variables into the
    correlation list. Moves of variables outside the initial universe are
    ignored and reported as ``False``.
    """

    def __init__(
        self,
        variables: Sequence[Variable],
        test: Iterable[Variable] = (),
        control: Iterable[Variable] = (),
        grouping: Optional[Variable] = None,
        accepts: Optional[MovePredicate] = None,
    ):
        self._universe: Dict[str, Variable] = {}
        for variable in variables:
            self._universe.setdefault(variable.temp_id, variable)
        self._order = {temp_id: index for index, temp_id in enumerate(self._universe)}
        self._accepts = accepts

        self._initial_test = [v.temp_id for v in test if v.temp_id in self._universe]
        self._initial_control = [
            v.temp_id for v in control if v.temp_id in self._universe and v.temp_id not in self._initial_test
        ]
        self._initial_grouping = (
            grouping.temp_id
            if grouping is not None
            and grouping.temp_id in self._universe
            and grouping.temp_id not in self._initial_test + self._initial_control
            else None
        )

        self.highlighted: Optional[Highlight] = None
        self.reset()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @property
    def available(self) -> List[Variable]:
        return [self._universe[temp_id] for temp_id in self._available]

    @property
    def test(self) -> List[Variable]:
        return [self._universe[temp_id] for temp_id in self._test]

    @property
    def control(self) -> List[Variable]:
        return [self._universe[temp_id] for temp_id in self._control]

    @property
    def grouping(self) -> Optional[Variable]:
        return self._universe[self._grouping] if self._grouping is not None else None

    @property
    def highlighted_variable(self) -> Optional[Variable]:
        if self.highlighted is None:
            return None
        return self._universe.get(self.highlighted.temp_id)

    def bucket_of(self, variable: Variable) -> Optional[Bucket]:
        temp_id = variable.temp_id
        if temp_id in self._available:
            return Bucket.AVAILABLE
        if temp_id in self._test:
            return Bucket.TEST
        if temp_id in self._control:
            return Bucket.CONTROL
        if temp_id == self._grouping:
            return Bucket.GROUPING
        return None

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------
    def move_to_test(self, variable: Variable) -> bool:
        if not self._can_move(variable, Bucket.TEST):
            return False
        self._detach(variable.temp_id)
        self._test.append(variable.temp_id)
        return True

    def move_to_control(self, variable: Variable) -> bool:
        if not self._can_move(variable, Bucket.CONTROL):
            return False
        self._detach(variable.temp_id)
        self._control.append(variable.temp_id)
        return True

    def move_to_grouping(self, variable: Variable) -> bool:
        if not self._can_move(variable, Bucket.GROUPING):
            return False
        self._detach(variable.temp_id)
        previous, self._grouping = self._grouping, variable.temp_id
        if previous is not None and previous != variable.temp_id:
            self._insert_available(previous)
        return True

    def move_to_available(self, variable: Variable) -> bool:
        if variable.temp_id not in self._universe:
            logger.debug("Ignoring unknown variable %s", variable.name)
            return False
        if self.bucket_of(variable) == Bucket.AVAILABLE:
            return False
        self._detach(variable.temp_id)
        self._insert_available(variable.temp_id)
        return True

    def reorder(self, bucket: Bucket, new_order: Sequence[Variable]) -> bool:
        """Replace a bucket's order; anything but a permutation of it is ignored."""

        current = self._bucket_list(Bucket(bucket))
        if current is None:
            return False
        ids = [variable.temp_id for variable in new_order]
        if len(ids) != len(current) or sorted(ids) != sorted(current):
            logger.debug("Ignoring reorder of %s: not a permutation", bucket)
            return False
        current[:] = ids
        return True

    # ------------------------------------------------------------------
    # Highlight
    # ------------------------------------------------------------------
    def set_highlighted(self, temp_id: str, source: Bucket) -> None:
        if temp_id not in self._universe:
            return
        self.highlighted = Highlight(temp_id, Bucket(source))

    def clear_highlighted(self) -> None:
        self.highlighted = None

    def reset(self) -> None:
        self._test: List[str] = list(self._initial_test)
        self._control: List[str] = list(self._initial_control)
        self._grouping: Optional[str] = self._initial_grouping
        assigned = set(self._test) | set(self._control) | {self._grouping}
        self._available: List[str] = [temp_id for temp_id in self._universe if temp_id not in assigned]
        self.highlighted = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _can_move(self, variable: Variable, target: Bucket) -> bool:
        if variable.temp_id not in self._universe:
            logger.debug("Ignoring unknown variable %s", variable.name)
            return False
        if self.bucket_of(variable) == target:
            return False
        if self._accepts is not None and not self._accepts(self._universe[variable.temp_id], target):
            return False
        return True

    def _bucket_list(self, bucket: Bucket) -> Optional[List[str]]:
        return {
            Bucket.AVAILABLE: self._available,
            Bucket.TEST: self._test,
            Bucket.CONTROL: self._control,
        }.get(bucket)

    def _detach(self, temp_id: str) -> None:
        for bucket in (self._available, self._test, self._control):
            if temp_id in bucket:
                bucket.remove(temp_id)
        if self._grouping == temp_id:
            self._grouping = None
        if self.highlighted is not None and self.highlighted.temp_id == temp_id:
            self.highlighted = None

    def _insert_available(self, temp_id: str) -> None:
        position = self._order[temp_id]
        for index, existing in enumerate(self._available):
            if self._order[existing] > position:
                self._available.insert(index, temp_id)
                return
        self._available.append(temp_id)


__all__ = ["Bucket", "Highlight", "VariablePartition"]
