#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type hints used internally by this package"""

from typing import (
    Dict, List, Optional, Union, Any, TYPE_CHECKING, Callable, Awaitable, Iterable, Iterator,
    Mapping, MutableMapping, Tuple, Set, Sequence, Type, TypeVar, cast, overload,
    AsyncIterator, AsyncIterable, AsyncContextManager, Generator, TextIO,
  )

from types import TracebackType

from typing_extensions import Self

Jsonable = Union[str, int, float, bool, None, Dict[str, 'Jsonable'], List['Jsonable']]
"""A type hint for a simple JSON-serializable value; i.e., str, int, float, bool, None, Dict[str, Jsonable], List[Jsonable]"""

JsonableDict = Dict[str, Jsonable]
"""A type hint for a simple JSON-serializable dict; i.e., Dict[str, Jsonable]"""

JsonableTypes = (str, int, float, bool, dict, list)
"""A tuple of the types that may be passed to isinstance() to check for a non-None Jsonable value"""

HostAndPort = Tuple[str, int]
"""A type hint for an (ip_address, port) socket address"""

ReadingValue = Union[str, int]
"""A type hint for the value of a single reading"""
