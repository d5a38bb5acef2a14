from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional
from qbgen.core.config import Target, settings
from qbgen.core.logging import GenerationLogAdapter
from qbgen.core.workflow import GenerationResult, GenerationStage
from qbgen.db.connection import SchemaClient, create_client
from qbgen.generators.builders import DirBuilder
from qbgen.generators.emitter import render_target
from qbgen.generators.genutil import GeneratorParams
from qbgen.generators.registry import GeneratorRegistry
from qbgen.generators.surface import generate_imports, generate_index
from qbgen.introspect.introspector import Introspection, introspect
from qbgen.sync.dirsync import DirectorySynchronizer
from qbgen.sync.syntax_files import prepare_syntax_files

log = logging.getLogger(__name__)

ClientFactory = Callable[..., Awaitable[SchemaClient]]


class GenerationEngine:
    """Runs one generation: connect, introspect, generate, merge, emit, sync."""

    def __init__(
        self,
        output_dir: Path | str,
        target: Target,
        client_factory: ClientFactory = create_client,
        registry: Optional[GeneratorRegistry] = None,
        runtime_package: Optional[str] = None,
        runtime_version: Optional[str] = None,
    ):
        self.output_dir = Path(output_dir)
        self.target = target
        self.client_factory = client_factory
        self.registry = registry or GeneratorRegistry.default()
        self.runtime_package = runtime_package or settings.runtime_package
        self.runtime_version = runtime_version or settings.runtime_version
        self.stage = GenerationStage.CONNECT
        self.log = GenerationLogAdapter(log, target)

    def _set_stage(self, stage: GenerationStage) -> None:
        self.stage = stage
        self.log.stage = stage.value
        self.log.info("Running stage")

    async def run(self, dsn: str | None = None, wait_until_available: float | None = None) -> GenerationResult:
        try:
            introspection = await self._introspect(dsn, wait_until_available)
            return self._generate(introspection)
        except Exception:
            self._fail()
            raise

    async def _introspect(self, dsn: str | None, wait_until_available: float | None) -> Introspection:
        """Connect, read the schema, and release the connection before any output work."""
        self._set_stage(GenerationStage.CONNECT)
        cxn = await self.client_factory(dsn=dsn, wait_until_available=wait_until_available)
        try:
            self._set_stage(GenerationStage.INTROSPECT)
            return await introspect(cxn)
        finally:
            await cxn.close()
            self.log.debug("Schema connection closed")

    def _generate(self, introspection: Introspection) -> GenerationResult:
        self._set_stage(GenerationStage.GENERATE)
        dir = DirBuilder()
        params = GeneratorParams(
            dir=dir,
            catalog=introspection.catalog,
            types_by_name=introspection.types_by_name,
            runtime_package=self.runtime_package,
        )
        generate_imports(dir, self.runtime_package)
        self.registry.run(params)

        self._set_stage(GenerationStage.MERGE)
        generate_index(dir, self.runtime_package, self.runtime_version)

        self._set_stage(GenerationStage.EMIT)
        files = render_target(dir, self.target)
        syntax_files = prepare_syntax_files(self.target, self.runtime_package)

        self._set_stage(GenerationStage.SYNC)
        self.log.info("Writing files to %s", self.output_dir)
        with DirectorySynchronizer(self.output_dir) as sync:
            sync.write_all(files)
            sync.copy_syntax_files(syntax_files)
            sync.write_config(self.target)

        self._set_stage(GenerationStage.DONE)
        return GenerationResult(
            target=self.target,
            output_dir=str(self.output_dir),
            written=self._relative(sync.written),
            changed=self._relative(sync.changed),
            removed=self._relative(sync.removed),
        )

    def _fail(self) -> None:
        self.log.error("Stage failed")
        self.stage = GenerationStage.FAILED
        self.log.stage = self.stage.value

    def _relative(self, paths) -> list[str]:
        return sorted(p.relative_to(self.output_dir).as_posix() for p in paths)


def run_generation(
    output_dir: Path | str,
    target: Target,
    dsn: str | None = None,
    wait_until_available: float | None = None,
    client_factory: ClientFactory = create_client,
) -> GenerationResult:
    engine = GenerationEngine(output_dir, target, client_factory=client_factory)
    return asyncio.run(engine.run(dsn=dsn, wait_until_available=wait_until_available))
