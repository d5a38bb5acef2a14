"""Generates ``__spec__``: the introspected type map the runtime resolves ids against."""
import json
from qbgen.generators.builders import dts, r, t
from qbgen.generators.genutil import GeneratorParams


def generate_runtime_spec(params: GeneratorParams) -> None:
    spec = params.dir.get_path("__spec__")
    spec.add_import(["$"], params.runtime_package)

    spec.writeln([
        dts("declare "),
        "const spec",
        t(": $.introspect.Types"),
        r(" = new $.StrictMap()"),
        ";",
    ])
    spec.nl()
    for name in sorted(params.catalog.types):
        type_ = params.catalog.types[name]
        payload = json.dumps(type_.model_dump(mode="json"), sort_keys=True)
        spec.writeln([r(f"spec.set({json.dumps(type_.id)}, {payload});")])
    spec.add_export("spec")
