from dataclasses import dataclass
from typing import Callable, List, Tuple
from qbgen.generators.genutil import GeneratorParams
from qbgen.generators.domain.runtime_spec import generate_runtime_spec
from qbgen.generators.domain.cast_maps import generate_cast_maps
from qbgen.generators.domain.scalars import generate_scalars
from qbgen.generators.domain.object_types import generate_object_types
from qbgen.generators.domain.functions import generate_function_types
from qbgen.generators.domain.operators import generate_operators
from qbgen.generators.domain.set_impl import generate_set_impl
from qbgen.generators.domain.globals import generate_globals

DomainGenerator = Callable[[GeneratorParams], None]

@dataclass
class GeneratorRegistry:
    """Domain generators in the order they must run; later ones may use earlier declarations."""
    generators: List[Tuple[str, DomainGenerator]]

    def run(self, params: GeneratorParams) -> None:
        for _, generator in self.generators:
            generator(params)

    @staticmethod
    def default() -> "GeneratorRegistry":
        return GeneratorRegistry(generators=[
            ("runtime_spec", generate_runtime_spec),
            ("cast_maps", generate_cast_maps),
            ("scalars", generate_scalars),
            ("object_types", generate_object_types),
            ("functions", generate_function_types),
            ("operators", generate_operators),
            ("set_impl", generate_set_impl),
            ("globals", generate_globals),
        ])
