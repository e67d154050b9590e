"""Query — a validated, immutable input that retrieves data.

Queries share the creation lifecycle with commands but have no
before-dispatch or authorization stage::

    class GetUser(Query):
        @classmethod
        def define(cls, schema):
            schema.field("email", str)

        def handle_execute(self, opts):
            return users.get(self.email)

    GetUser.execute(GetUser.new({"email": "chris@example.com"}), tag=True)
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, ClassVar

from cqrskit.definitions.base import Definition
from cqrskit.domain.errors import QueryInvalidError
from cqrskit.domain.result import Err
from cqrskit.services.dispatch import execute_query


class Query(Definition, abstract=True):
    """Base class for queries. Implicit attribute: ``discarded_fields``."""

    _implicit_defaults: ClassVar[Mapping[str, Any]] = MappingProxyType({"discarded_fields": {}})
    _invalid_error = QueryInvalidError

    def handle_execute(self, opts: dict[str, Any]) -> Any:
        """Run the query against whatever store backs it."""
        msg = f"{type(self).__name__} must implement handle_execute"
        raise NotImplementedError(msg)

    @classmethod
    def execute(cls, query: Any, /, **opts: Any) -> Any:
        """Execute an instance, or the Result of :meth:`new`."""
        cls._ensure_concrete()
        return execute_query(cls, query, cls.__options__.resolve(opts))

    @classmethod
    def execute_or_raise(cls, query: Any, /, **opts: Any) -> Any:
        """Like :meth:`execute` but raise :class:`QueryInvalidError` for a failed ``new``."""
        if isinstance(query, Err):
            raise QueryInvalidError(query.error)
        return cls.execute(query, **opts)
