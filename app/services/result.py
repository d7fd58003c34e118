"""Outcome of a service operation.

Service calls that can miss, reject their input or hit a store failure
return one of these, so callers branch on the result type instead of mixing
``None`` checks with exception handling. Plain listings return their list
directly.
"""
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    message: str


@dataclass(frozen=True)
class Invalid:
    message: str


@dataclass(frozen=True)
class Failure:
    message: str


Result = Union[Found[T], NotFound, Invalid, Failure]
