"""
Privilege checks.

authorize() is the only place where the super role bypass is decided. The
FastAPI dependencies in core.dependencies and the guard() wrapper below both
go through it.
"""

import functools
import inspect
import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, Iterator, List, Optional, Union

from scolitrack.config.privileges_config import (
    PrivilegeName,
    SUPER_ADMIN_ROLE,
    has_all_privileges,
    has_any_privilege,
)
from scolitrack.core.exceptions import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)

Required = Union[PrivilegeName, str, Iterable[Union[PrivilegeName, str]]]


@dataclass(frozen=True)
class Caller:
    id: str
    role_name: Optional[str]
    privileges: FrozenSet[str] = field(default_factory=frozenset)
    email: Optional[str] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role_name == SUPER_ADMIN_ROLE


_current_caller: ContextVar[Optional[Caller]] = ContextVar("current_caller", default=None)


def current_caller() -> Optional[Caller]:
    return _current_caller.get()


def bind_caller(caller: Optional[Caller]) -> Token:
    return _current_caller.set(caller)


def reset_caller(token: Token) -> None:
    _current_caller.reset(token)


@contextmanager
def caller_context(caller: Optional[Caller]) -> Iterator[Optional[Caller]]:
    """Bind `caller` as the current caller for the duration of the block"""
    token = bind_caller(caller)
    try:
        yield caller
    finally:
        reset_caller(token)


def _names(required: Required) -> List[str]:
    """Flatten one privilege or nested iterables of them into names"""
    if isinstance(required, PrivilegeName):
        return [required.value]
    if isinstance(required, str):
        return [required]
    names: List[str] = []
    for item in required:
        names.extend(_names(item))
    return names


def authorize(caller: Optional[Caller], required: Required, any_of: bool = False) -> Caller:
    """
    Check that `caller` holds the required privilege(s).

    The super role holds every privilege, including ones the registry does not
    define yet. For several privileges, all are required unless any_of=True.

    Raises:
        Unauthenticated: no caller
        Forbidden: privilege missing
    """
    if caller is None:
        raise Unauthenticated()
    if caller.is_super_admin:
        return caller

    names = _names(required)
    check = has_any_privilege if any_of else has_all_privileges
    if not names or not check(caller.privileges, names):
        logger.info(f"Access denied for user {caller.id} (role {caller.role_name}): requires {names}")
        raise Forbidden(f"Insufficient privileges. Required: {', '.join(names)}")
    return caller


def guard(required: Required, operation: Optional[Callable] = None, any_of: bool = False):
    """
    Wrap `operation` so it only runs when the current caller is authorized.

    Usable directly, guard(PrivilegeName.DELETE_DATA, op), or as a decorator,
    @guard(PrivilegeName.DELETE_DATA). The wrapped callable keeps the
    signature of `operation`; coroutine functions stay awaitable.
    """
    def decorate(op: Callable) -> Callable:
        if inspect.iscoroutinefunction(op):
            @functools.wraps(op)
            async def async_wrapper(*args, **kwargs):
                authorize(current_caller(), required, any_of=any_of)
                return await op(*args, **kwargs)
            return async_wrapper

        @functools.wraps(op)
        def wrapper(*args, **kwargs):
            authorize(current_caller(), required, any_of=any_of)
            return op(*args, **kwargs)
        return wrapper

    if operation is not None:
        return decorate(operation)
    return decorate
