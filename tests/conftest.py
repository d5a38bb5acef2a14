"""Shared fixtures: an in-memory schema client and a small schema."""
import asyncio
import pytest
from qbgen.introspect import queries

STR_ID = "00000000-0000-0000-0000-000000000101"
INT64_ID = "00000000-0000-0000-0000-000000000105"
USER_ID = "5a7d3c2e-0000-4000-8000-000000000001"


class FakeSchemaClient:
    """Answers the catalog queries from canned rows."""

    def __init__(self, rows=None, version=(2, 0), fail_on=None, delay_on=None):
        self.rows = rows or {}
        self.version = version
        self.fail_on = fail_on or {}
        self.delay_on = delay_on or {}
        self.queries = []
        self.cancelled = []
        self.closed = False

    async def query(self, text, **params):
        self.queries.append(text)
        if text in self.delay_on:
            try:
                await asyncio.sleep(self.delay_on[text])
            except asyncio.CancelledError:
                self.cancelled.append(text)
                raise
        if text in self.fail_on:
            raise self.fail_on[text]
        return list(self.rows.get(text, []))

    async def query_required_single(self, text, **params):
        self.queries.append(text)
        major, minor = self.version
        return {"major": major, "minor": minor}

    async def close(self):
        self.closed = True


def user_schema_rows(extra_types=()):
    """Rows for a schema with ``std::str``, ``std::int64`` and ``default::User{name: str}``."""
    types = [
        {"id": STR_ID, "name": "std::str", "kind": "scalar", "is_abstract": False,
         "bases": [], "enum_values": None, "material": None},
        {"id": INT64_ID, "name": "std::int64", "kind": "scalar", "is_abstract": False,
         "bases": [], "enum_values": None, "material": None},
        {"id": "00000000-0000-0000-0000-000000000001", "name": "anytype", "kind": "unknown"},
        {"id": USER_ID, "name": "default::User", "kind": "object", "is_abstract": False,
         "bases": [], "pointers": [
             {"name": "name", "kind": "property", "target": "std::str", "cardinality": "One",
              "is_exclusive": False, "is_computed": False, "is_readonly": False, "has_default": False},
         ]},
    ]
    types.extend(extra_types)
    return {
        queries.TYPES_QUERY_V2: types,
        queries.TYPES_QUERY_V1: types,
        queries.CASTS_QUERY: [
            {"source": "std::int64", "target": "std::str", "allow_implicit": False, "allow_assignment": False},
        ],
        queries.FUNCTIONS_QUERY: [
            {"id": "f-len", "name": "std::len", "params": '[{"name": "str", "type": "std::str"}]',
             "return_type": "std::int64", "return_typemod": "SingletonType"},
        ],
        queries.OPERATORS_QUERY: [
            {"id": "o-concat", "name": "std::++", "operator_symbol": "++", "operator_kind": "Infix",
             "params": [{"name": "l", "type": "std::str"}, {"name": "r", "type": "std::str"}],
             "return_type": "std::str"},
        ],
        queries.GLOBALS_QUERY: [],
    }


@pytest.fixture
def fake_client_factory():
    """Build a client factory that hands out one FakeSchemaClient."""
    def make(rows=None, **kwargs):
        client = FakeSchemaClient(rows=rows if rows is not None else user_schema_rows(), **kwargs)

        async def factory(dsn=None, wait_until_available=None):
            return client
        factory.client = client
        return factory
    return make
