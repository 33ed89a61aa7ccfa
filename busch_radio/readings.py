#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Readings -- the change-detecting cache of published device values.

A reading is only ever written through update(), which compares the new value with the
stored one and does nothing if they are equal. Updates are either committed immediately
(one notification per changed reading) or grouped in a batch:

    with readings.bulk_update() as batch:
        readings.update('volume', 12)
        readings.update('mute', 'off')

A batch fires at most one notification, carrying every reading that changed within it,
and fires none if nothing changed. Derived readings are recomputed at the end of a batch
whenever one of their inputs was written in it.
"""

from __future__ import annotations

from contextlib import contextmanager

from .internal_types import *
from .pkg_logging import logger
from .exceptions import RadioError

ReadingsListener = Callable[[Dict[str, Optional[ReadingValue]]], None]
"""A callback that receives the readings that changed in one notification, by name."""

DerivedReadingFunc = Callable[['Readings'], Optional[ReadingValue]]
"""Computes the value of a derived reading from the current readings."""

class _DerivedReading:
    name: str
    inputs: Tuple[str, ...]
    compute: DerivedReadingFunc

    def __init__(self, name: str, inputs: Iterable[str], compute: DerivedReadingFunc):
        self.name = name
        self.inputs = tuple(inputs)
        self.compute = compute

class ReadingsBatch:
    """The state of an open batch of reading updates."""

    changed: Dict[str, Optional[ReadingValue]]
    """Readings whose value changed in this batch, with their new value."""

    touched: Set[str]
    """Readings that were written in this batch, whether or not the value changed."""

    def __init__(self):
        self.changed = {}
        self.touched = set()

    @property
    def any_changed(self) -> bool:
        return len(self.changed) > 0

class Readings:
    """The readings of one device, with change detection and batched notification."""

    _values: Dict[str, Optional[ReadingValue]]
    """The current readings. A missing key or a None value means "unset"."""

    _batch: Optional[ReadingsBatch] = None
    """The currently open batch, if any."""

    _derived: List[_DerivedReading]
    """Derived readings, recomputed at the end of a batch when an input was written."""

    _listeners: Dict[int, ReadingsListener]
    """Callbacks invoked with the changed readings of each notification, indexed by ID number."""

    _i_next_listener: int = 0

    def __init__(self, initial: Optional[Mapping[str, Optional[ReadingValue]]]=None):
        self._values = {}
        self._derived = []
        self._listeners = {}
        if not initial is None:
            self.silent_update(initial)

    def __contains__(self, name: str) -> bool:
        return not self._values.get(name) is None

    def get(self, name: str, default: Optional[ReadingValue]=None) -> Optional[ReadingValue]:
        """Returns the value of a reading, or default if it is unset."""
        result = self._values.get(name)
        if result is None:
            return default
        return result

    def get_str(self, name: str, default: str='') -> str:
        """Returns the value of a reading as a str, or default if it is unset."""
        result = self._values.get(name)
        if result is None:
            return default
        return str(result)

    def get_int(self, name: str) -> Optional[int]:
        """Returns the value of a reading as an int, or None if it is unset or not an integer."""
        result = self._values.get(name)
        if result is None:
            return None
        try:
            return int(result)
        except ValueError:
            return None

    def as_dict(self) -> Dict[str, Optional[ReadingValue]]:
        """Returns a copy of all readings."""
        return dict(self._values)

    def add_listener(self, listener: ReadingsListener) -> int:
        """Adds a callback to be called with the changed readings of every notification. Returns an ID
           that can be passed to remove_listener()."""
        i = self._i_next_listener
        self._i_next_listener += 1
        self._listeners[i] = listener
        return i

    def remove_listener(self, i: int) -> None:
        """Removes a previously added listener."""
        del self._listeners[i]

    def add_derived(self, name: str, inputs: Iterable[str], compute: DerivedReadingFunc) -> None:
        """Registers a derived reading that is recomputed whenever one of its inputs is written in a batch."""
        self._derived.append(_DerivedReading(name, inputs, compute))

    @property
    def in_batch(self) -> bool:
        return not self._batch is None

    def silent_update(self, values: Mapping[str, Optional[ReadingValue]]) -> None:
        """Writes readings without change detection or notification. Used for initialization only."""
        self._values.update(values)

    @staticmethod
    def _differs(old: Optional[ReadingValue], new: Optional[ReadingValue]) -> bool:
        if old is None:
            return not new is None
        return new is None or str(old) != str(new)

    def update(self, name: str, value: Optional[ReadingValue], notify_immediately: bool=False) -> bool:
        """Sets a reading if its value differs from the stored one. Returns True if it changed.

        If notify_immediately is True, or no batch is open, the change is committed and notified at once.
        Otherwise it becomes part of the open batch.
        """
        old = self._values.get(name)
        batch = self._batch
        if not notify_immediately and not batch is None:
            batch.touched.add(name)
        if not self._differs(old, value):
            return False
        self._values[name] = value
        logger.debug(f"Reading {name}: {old!r} -> {value!r}")
        if notify_immediately or batch is None:
            self._notify({ name: value })
        else:
            batch.changed[name] = value
        return True

    def begin_update(self) -> ReadingsBatch:
        """Opens a batch of updates. Batches do not nest."""
        if not self._batch is None:
            raise RadioError("Readings: a batch of updates is already open")
        self._batch = ReadingsBatch()
        return self._batch

    def end_update(self, notify: bool=True) -> bool:
        """Closes the open batch, folding in derived readings. Fires a single notification if anything changed
           and notify is True. Returns True if any reading changed in the batch."""
        batch = self._batch
        if batch is None:
            raise RadioError("Readings: no batch of updates is open")
        try:
            for derived in self._derived:
                if any(name in batch.touched for name in derived.inputs):
                    self.update(derived.name, derived.compute(self))
        finally:
            self._batch = None
        if notify and batch.any_changed:
            self._notify(batch.changed)
        return batch.any_changed

    @contextmanager
    def bulk_update(self, notify: bool=True) -> Generator[ReadingsBatch, None, None]:
        """A context manager that wraps begin_update()/end_update(). If the body raises, the updates made so far
           are kept but no notification is fired."""
        batch = self.begin_update()
        try:
            yield batch
        except BaseException:
            self.end_update(notify=False)
            raise
        self.end_update(notify=notify)

    def _notify(self, changed: Mapping[str, Optional[ReadingValue]]) -> None:
        event = dict(changed)
        for listener in list(self._listeners.values()):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Readings listener raised exception processing {event}: {e}")
