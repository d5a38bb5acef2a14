from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Tuple
from sqlalchemy.exc import SQLAlchemyError
from qbgen.core.errors import IntrospectionError
from qbgen.db.connection import SchemaClient
from qbgen.introspect import queries
from qbgen.schemas.catalog import SchemaCatalog, SchemaType, Version

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Introspection:
    catalog: SchemaCatalog
    types_by_name: Dict[str, SchemaType]

    @property
    def version(self) -> Version:
        return self.catalog.version


def build_types_by_name(types: Dict[str, SchemaType]) -> Dict[str, SchemaType]:
    """Index types by fully-qualified name, leaving out placeholders like ``anytype``."""
    index = {}
    for type_ in types.values():
        if "::" not in type_.name:
            continue
        index[type_.name] = type_
    return index


async def _run_category(category: str, query: Awaitable[Any]) -> Any:
    try:
        return await query
    except (SQLAlchemyError, KeyError, TypeError, ValueError) as e:
        raise IntrospectionError(category, e) from e


async def _gather_or_cancel(jobs: List[Tuple[str, Awaitable[Any]]]) -> List[Any]:
    tasks = [asyncio.ensure_future(_run_category(category, query)) for category, query in jobs]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def introspect(cxn: SchemaClient) -> Introspection:
    """Read every catalog category from the connected server.

    The category queries are independent and run concurrently; the client
    bounds how many execute at once. The first failure aborts the whole
    introspection and cancels the queries still in flight.
    """
    version = await _run_category("version", queries.get_version(cxn))
    log.info("Introspecting database schema (server version %s)...", version)

    types, scalars, casts, functions, operators, globals_ = await _gather_or_cancel([
        ("types", queries.get_types(cxn, version)),
        ("scalars", queries.get_scalars(cxn, version)),
        ("casts", queries.get_casts(cxn, version)),
        ("functions", queries.get_functions(cxn, version)),
        ("operators", queries.get_operators(cxn, version)),
        ("globals", queries.get_globals(cxn, version)),
    ])

    catalog = SchemaCatalog(
        version=version,
        types=types,
        scalars=scalars,
        casts=casts,
        functions=functions,
        operators=operators,
        globals=globals_,
    )
    log.info(
        "Introspection completed: %d types, %d cast sources, %d functions, %d operators, %d globals",
        len(types), len(casts), len(functions), len(operators), len(globals_),
    )
    return Introspection(catalog=catalog, types_by_name=build_types_by_name(types))
