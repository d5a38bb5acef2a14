"""Catalog queries, one per schema category.

Each query reads the server's reflection views and returns one row per schema
object; nested data (pointers, parameters, tuple elements) comes back as a
JSON column. Variants are selected by server version.
"""
from __future__ import annotations
import json
from typing import Any, Dict, List, Tuple
from qbgen.db.connection import Row, SchemaClient
from qbgen.schemas.catalog import (
    ArrayType,
    Cast,
    FunctionDef,
    Global,
    ObjectType,
    OperatorDef,
    Param,
    Pointer,
    PseudoType,
    ScalarType,
    SchemaType,
    TupleElement,
    TupleType,
    Version,
)

VERSION_QUERY = "SELECT major, minor FROM reflection.server_version"

TYPES_QUERY_V1 = """
SELECT t.id, t.name, t.kind, t.is_abstract, t.bases, t.enum_values,
       t.material, t.element, t.tuple_elements,
       (SELECT json_agg(json_build_object(
            'name', p.name, 'kind', p.kind, 'target', p.target,
            'cardinality', p.cardinality, 'is_exclusive', p.is_exclusive,
            'is_computed', p.is_computed, 'is_readonly', p.is_readonly
        ) ORDER BY p.name)
        FROM reflection.pointers p WHERE p.source_id = t.id) AS pointers
FROM reflection.types t
ORDER BY t.name
"""

TYPES_QUERY_V2 = """
SELECT t.id, t.name, t.kind, t.is_abstract, t.bases, t.enum_values,
       t.material, t.element, t.tuple_elements,
       (SELECT json_agg(json_build_object(
            'name', p.name, 'kind', p.kind, 'target', p.target,
            'cardinality', p.cardinality, 'is_exclusive', p.is_exclusive,
            'is_computed', p.is_computed, 'is_readonly', p.is_readonly,
            'has_default', p.has_default
        ) ORDER BY p.name)
        FROM reflection.pointers p WHERE p.source_id = t.id) AS pointers
FROM reflection.types t
ORDER BY t.name
"""

CASTS_QUERY = """
SELECT c.source, c.target, c.allow_implicit, c.allow_assignment
FROM reflection.casts c
ORDER BY c.source, c.target
"""

FUNCTIONS_QUERY = """
SELECT f.id, f.name, f.params, f.return_type, f.return_typemod, f.preserves_optionality
FROM reflection.functions f
WHERE NOT f.is_internal
ORDER BY f.name, f.id
"""

OPERATORS_QUERY = """
SELECT o.id, o.name, o.operator_symbol, o.operator_kind, o.params,
       o.return_type, o.return_typemod
FROM reflection.operators o
WHERE NOT o.is_abstract
ORDER BY o.name, o.id
"""

GLOBALS_QUERY = """
SELECT g.id, g.name, g.target, g.cardinality, g.has_default
FROM reflection.globals g
ORDER BY g.name
"""

# TypeScript types used for scalar literals
SCALAR_TS_TYPES = {
    "std::str": "string",
    "std::uuid": "string",
    "std::json": "unknown",
    "std::bool": "boolean",
    "std::int16": "number",
    "std::int32": "number",
    "std::int64": "number",
    "std::float32": "number",
    "std::float64": "number",
    "std::bigint": "bigint",
    "std::decimal": "string",
    "std::bytes": "Uint8Array",
    "std::datetime": "Date",
    "std::duration": "Duration",
    "cal::local_datetime": "LocalDateTime",
    "cal::local_date": "LocalDate",
    "cal::local_time": "LocalTime",
    "cal::relative_duration": "RelativeDuration",
    "cal::date_duration": "DateDuration",
    "cfg::memory": "ConfigMemory",
}


def _json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def _list(value: Any) -> List[Any]:
    return list(_json(value) or [])


async def get_version(cxn: SchemaClient) -> Version:
    row = await cxn.query_required_single(VERSION_QUERY)
    return Version(major=row["major"], minor=row["minor"])


def _parse_type(row: Row) -> SchemaType:
    kind = row["kind"]
    if kind == "object":
        return ObjectType(
            id=row["id"],
            name=row["name"],
            is_abstract=bool(row.get("is_abstract")),
            bases=tuple(_list(row.get("bases"))),
            pointers=tuple(Pointer(**p) for p in _list(row.get("pointers"))),
        )
    if kind == "scalar":
        enum_values = row.get("enum_values")
        return ScalarType(
            id=row["id"],
            name=row["name"],
            is_abstract=bool(row.get("is_abstract")),
            bases=tuple(_list(row.get("bases"))),
            enum_values=tuple(_list(enum_values)) if enum_values else None,
            material=row.get("material"),
            ts_type=SCALAR_TS_TYPES.get(row.get("material") or row["name"], "unknown"),
        )
    if kind == "array":
        return ArrayType(id=row["id"], name=row["name"], element=row["element"])
    if kind == "tuple":
        return TupleType(
            id=row["id"],
            name=row["name"],
            elements=tuple(TupleElement(**e) for e in _list(row.get("tuple_elements"))),
        )
    return PseudoType(id=row["id"], name=row["name"])


async def get_types(cxn: SchemaClient, version: Version) -> Dict[str, SchemaType]:
    query = TYPES_QUERY_V2 if version.major >= 2 else TYPES_QUERY_V1
    rows = await cxn.query(query)
    return {row["name"]: _parse_type(row) for row in rows}


async def get_scalars(cxn: SchemaClient, version: Version) -> Dict[str, ScalarType]:
    types = await get_types(cxn, version)
    return {name: t for name, t in types.items() if isinstance(t, ScalarType)}


async def get_casts(cxn: SchemaClient, version: Version) -> Dict[str, Tuple[Cast, ...]]:
    rows = await cxn.query(CASTS_QUERY)
    casts: Dict[str, List[Cast]] = {}
    for row in rows:
        casts.setdefault(row["source"], []).append(Cast(**row))
    return {source: tuple(items) for source, items in casts.items()}


def _group(rows: List[Row], build) -> Dict[str, Tuple[Any, ...]]:
    grouped: Dict[str, List[Any]] = {}
    for row in rows:
        grouped.setdefault(row["name"], []).append(build(row))
    return {name: tuple(items) for name, items in grouped.items()}


def _params(row: Row) -> Tuple[Param, ...]:
    return tuple(Param(**p) for p in _list(row.get("params")))


async def get_functions(cxn: SchemaClient, version: Version) -> Dict[str, Tuple[FunctionDef, ...]]:
    rows = await cxn.query(FUNCTIONS_QUERY)
    return _group(rows, lambda row: FunctionDef(
        id=row["id"],
        name=row["name"],
        params=_params(row),
        return_type=row["return_type"],
        return_typemod=row.get("return_typemod") or "SingletonType",
        preserves_optionality=bool(row.get("preserves_optionality")),
    ))


async def get_operators(cxn: SchemaClient, version: Version) -> Dict[str, Tuple[OperatorDef, ...]]:
    rows = await cxn.query(OPERATORS_QUERY)
    return _group(rows, lambda row: OperatorDef(
        id=row["id"],
        name=row["name"],
        operator_symbol=row["operator_symbol"],
        operator_kind=row["operator_kind"],
        params=_params(row),
        return_type=row["return_type"],
        return_typemod=row.get("return_typemod") or "SingletonType",
    ))


async def get_globals(cxn: SchemaClient, version: Version) -> Dict[str, Global]:
    # Globals were introduced in 2.0
    if version.major < 2:
        return {}
    rows = await cxn.query(GLOBALS_QUERY)
    return {row["name"]: Global(**row) for row in rows}
