"""BoundedContext — a named entry point for a group of commands and queries.

Registers definitions under snake_case names and runs the full
``new`` then ``dispatch`` (or ``execute``) chain for callers::

    users = BoundedContext("users")
    users.command(CreateUser)
    users.query(GetUser, as_="find_user")

    users.dispatch("create_user", {"email": "chris@example.com", "name": "chris"})
    users.execute("find_user", {"email": "chris@example.com"})
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from cqrskit.definitions.command import Command
from cqrskit.definitions.query import Query
from cqrskit.domain.errors import DefinitionError, NotACommandError, NotAQueryError

logger = logging.getLogger(__name__)

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")


def snake_case(name: str) -> str:
    """``CreateUser`` -> ``create_user``, ``GetHTTPStatus`` -> ``get_http_status``."""
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    return _WORD_BOUNDARY.sub(r"\1_\2", name).lower()


def _is_concrete(target: object, base: type) -> bool:
    return isinstance(target, type) and issubclass(target, base) and not target._abstract


class BoundedContext:
    """Named registry of the commands and queries a context exposes."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._commands: dict[str, type[Command]] = {}
        self._queries: dict[str, type[Query]] = {}

    def __repr__(self) -> str:
        return f"BoundedContext({self.name!r})"

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def command(self, command_cls: type[Command], as_: str | None = None) -> type[Command]:
        """Register *command_cls*, by default under its snake_case name.

        Returns the class so it can be used as a decorator.

        Raises:
            NotACommandError: If *command_cls* is not a concrete Command.
        """
        if not _is_concrete(command_cls, Command):
            raise NotACommandError(command_cls)
        name = as_ or snake_case(command_cls.__name__)
        self._claim(name)
        self._commands[name] = command_cls
        return command_cls

    def query(self, query_cls: type[Query], as_: str | None = None) -> type[Query]:
        """Register *query_cls*, by default under its snake_case name.

        Raises:
            NotAQueryError: If *query_cls* is not a concrete Query.
        """
        if not _is_concrete(query_cls, Query):
            raise NotAQueryError(query_cls)
        name = as_ or snake_case(query_cls.__name__)
        self._claim(name)
        self._queries[name] = query_cls
        return query_cls

    def _claim(self, name: str) -> None:
        if name in self._commands or name in self._queries:
            msg = f"{self.name} already exposes {name!r}"
            raise DefinitionError(msg)
        logger.debug("%s exposes %s", self.name, name)

    @property
    def commands(self) -> tuple[str, ...]:
        return tuple(self._commands)

    @property
    def queries(self) -> tuple[str, ...]:
        return tuple(self._queries)

    def get_command(self, name: str) -> type[Command]:
        try:
            return self._commands[name]
        except KeyError:
            msg = f"{self.name} has no command {name!r}"
            raise KeyError(msg) from None

    def get_query(self, name: str) -> type[Query]:
        try:
            return self._queries[name]
        except KeyError:
            msg = f"{self.name} has no query {name!r}"
            raise KeyError(msg) from None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def dispatch(
        self,
        name: str,
        attrs: Any = None,
        /,
        *,
        then: Callable[[Any], Any] | None = None,
        **opts: Any,
    ) -> Any:
        """``new`` then ``dispatch``; *then* receives the dispatch result.

        Raises:
            TypeError: If *then* is given but not callable.
        """
        command_cls = self.get_command(name)
        finish = _then(then)
        return finish(command_cls.dispatch(command_cls.new(attrs, **opts), **opts))

    def dispatch_or_raise(
        self,
        name: str,
        attrs: Any = None,
        /,
        *,
        then: Callable[[Any], Any] | None = None,
        **opts: Any,
    ) -> Any:
        """Like :meth:`dispatch` but raise ``CommandInvalidError`` for invalid input."""
        command_cls = self.get_command(name)
        finish = _then(then)
        return finish(command_cls.dispatch(command_cls.new_or_raise(attrs, **opts), **opts))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def create_query(self, name: str, attrs: Any = None, /, **opts: Any) -> Any:
        """Build the query without executing it."""
        return self.get_query(name).new(attrs, **opts)

    def create_query_or_raise(self, name: str, attrs: Any = None, /, **opts: Any) -> Query:
        return self.get_query(name).new_or_raise(attrs, **opts)

    def execute(self, name: str, attrs: Any = None, /, **opts: Any) -> Any:
        query_cls = self.get_query(name)
        return query_cls.execute(query_cls.new(attrs, **opts), **opts)

    def execute_or_raise(self, name: str, attrs: Any = None, /, **opts: Any) -> Any:
        """Like :meth:`execute` but raise ``QueryInvalidError`` for invalid input."""
        query_cls = self.get_query(name)
        return query_cls.execute(query_cls.new_or_raise(attrs, **opts), **opts)


def _then(then: Callable[[Any], Any] | None) -> Callable[[Any], Any]:
    if then is None:
        return lambda result: result
    if not callable(then):
        msg = f"'then' must be callable, got {type(then).__name__}"
        raise TypeError(msg)
    return then
