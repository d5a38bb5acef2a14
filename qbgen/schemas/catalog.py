from __future__ import annotations
from typing import Annotated, Dict, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

Cardinality = Literal["One", "AtMostOne", "Many", "AtLeastOne", "Empty"]
TypeMod = Literal["SingletonType", "OptionalType", "SetOfType"]
OperatorKind = Literal["Infix", "Prefix", "Postfix", "Ternary"]


class CatalogModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Version(CatalogModel):
    major: int
    minor: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


class Pointer(CatalogModel):
    name: str
    kind: Literal["link", "property"] = "property"
    target: str
    cardinality: Cardinality = "AtMostOne"
    is_exclusive: bool = False
    is_computed: bool = False
    is_readonly: bool = False
    has_default: bool = False


class ObjectType(CatalogModel):
    kind: Literal["object"] = "object"
    id: str
    name: str
    is_abstract: bool = False
    bases: Tuple[str, ...] = ()
    pointers: Tuple[Pointer, ...] = ()


class ScalarType(CatalogModel):
    kind: Literal["scalar"] = "scalar"
    id: str
    name: str
    is_abstract: bool = False
    bases: Tuple[str, ...] = ()
    enum_values: Optional[Tuple[str, ...]] = None
    material: Optional[str] = None
    ts_type: str = "unknown"


class ArrayType(CatalogModel):
    kind: Literal["array"] = "array"
    id: str
    name: str
    element: str


class TupleElement(CatalogModel):
    name: str
    target: str


class TupleType(CatalogModel):
    kind: Literal["tuple"] = "tuple"
    id: str
    name: str
    elements: Tuple[TupleElement, ...] = ()


class PseudoType(CatalogModel):
    """Placeholder types such as ``anytype`` and ``anytuple``."""
    kind: Literal["unknown"] = "unknown"
    id: str
    name: str


SchemaType = Annotated[
    Union[ObjectType, ScalarType, ArrayType, TupleType, PseudoType],
    Field(discriminator="kind"),
]


class Cast(CatalogModel):
    source: str
    target: str
    allow_implicit: bool = False
    allow_assignment: bool = False


class Param(CatalogModel):
    name: str
    type: str
    kind: Literal["PositionalParam", "NamedOnlyParam", "VariadicParam"] = "PositionalParam"
    typemod: TypeMod = "SingletonType"
    has_default: bool = False


class FunctionDef(CatalogModel):
    id: str
    name: str
    params: Tuple[Param, ...] = ()
    return_type: str
    return_typemod: TypeMod = "SingletonType"
    preserves_optionality: bool = False


class OperatorDef(CatalogModel):
    id: str
    name: str
    operator_symbol: str
    operator_kind: OperatorKind
    params: Tuple[Param, ...] = ()
    return_type: str
    return_typemod: TypeMod = "SingletonType"


class Global(CatalogModel):
    id: str
    name: str
    target: str
    cardinality: Cardinality = "AtMostOne"
    has_default: bool = False


class SchemaCatalog(CatalogModel):
    """Immutable snapshot of everything introspection returned."""
    version: Version
    types: Dict[str, SchemaType] = Field(default_factory=dict)
    scalars: Dict[str, ScalarType] = Field(default_factory=dict)
    casts: Dict[str, Tuple[Cast, ...]] = Field(default_factory=dict)
    functions: Dict[str, Tuple[FunctionDef, ...]] = Field(default_factory=dict)
    operators: Dict[str, Tuple[OperatorDef, ...]] = Field(default_factory=dict)
    globals: Dict[str, Global] = Field(default_factory=dict)


def split_name(fqn: str) -> Tuple[str, str]:
    """Split ``module::name`` into its module and short name."""
    module, _, name = fqn.rpartition("::")
    return module, name

