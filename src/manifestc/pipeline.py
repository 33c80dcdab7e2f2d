"""Generation pipeline.

Phases run strictly in order:

    uninitialized --init()--> initialized --prepare_files()--> files-prepared --emit()--> emitted

Manifests written over time call different subsets of the phases. The
ManifestShape of a pipeline states which subset the caller uses, and `emit`
checks its precondition against it instead of trusting call order:

    emit-only          emit() alone; the generator is initialised inside emit
    init-emit          init() then emit()
    init-prepare-emit  init(), prepare_files(), emit()

A failed init() leaves the pipeline in `failed`; nothing runs after that.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .context import BuildContext, PackageFactory, build_package, factory_key
from .errors import AlreadyEmitted, Diagnostic, EnvironmentInitError, ManifestError, OutOfOrderPhase
from .model import Package
from .plan import build_plan

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    FILES_PREPARED = "files-prepared"
    EMITTED = "emitted"
    FAILED = "failed"


class ManifestShape(str, Enum):
    EMIT_ONLY = "emit-only"
    INIT_EMIT = "init-emit"
    INIT_PREPARE_EMIT = "init-prepare-emit"


_EMIT_FROM: Dict[ManifestShape, Tuple[Phase, ...]] = {
    ManifestShape.EMIT_ONLY: (Phase.UNINITIALIZED, Phase.INITIALIZED, Phase.FILES_PREPARED),
    ManifestShape.INIT_EMIT: (Phase.INITIALIZED, Phase.FILES_PREPARED),
    ManifestShape.INIT_PREPARE_EMIT: (Phase.FILES_PREPARED,),
}


class Pipeline:
    def __init__(self, generator: Any, shape: ManifestShape = ManifestShape.INIT_PREPARE_EMIT):
        self.generator = generator
        self.shape = ManifestShape(shape)
        self.phase = Phase.UNINITIALIZED

    def _require(self, op: str, allowed: Tuple[Phase, ...]) -> None:
        if self.phase is Phase.EMITTED:
            raise AlreadyEmitted(f"{op}() called after the pipeline emitted.")
        if self.phase not in allowed:
            want = " or ".join(p.value for p in allowed)
            raise OutOfOrderPhase(
                f"{op}() called in phase '{self.phase.value}' (needs {want}, shape {self.shape.value}).",
            )

    def _init_generator(self) -> None:
        if not self.generator.init():
            self.phase = Phase.FAILED
            raise EnvironmentInitError("Generator could not initialise its environment.")
        self.phase = Phase.INITIALIZED
        logger.info("pipeline: initialized")

    def init(self) -> bool:
        self._require("init", (Phase.UNINITIALIZED,))
        self._init_generator()
        return True

    def prepare_files(self, root: Optional[Package] = None) -> None:
        self._require("prepare_files", (Phase.INITIALIZED,))
        self.generator.prepare_files(root)
        self.phase = Phase.FILES_PREPARED
        logger.info("pipeline: files prepared")

    def emit(self, root: Package) -> None:
        self._require("emit", _EMIT_FROM[self.shape])
        if self.phase is Phase.UNINITIALIZED:
            self._init_generator()

        build_plan(root)   # validation only: raises on cycles, bad edges, missing main libs
        root.freeze()
        try:
            self.generator.generate(root)
        except Exception:
            self.phase = Phase.FAILED
            raise
        self.phase = Phase.EMITTED
        logger.info("pipeline: emitted '%s'", root.name)


@dataclass
class RunReport:
    package: str
    shape: ManifestShape
    status: str = "ok"
    phase: Phase = Phase.UNINITIALIZED
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package": self.package,
            "shape": self.shape.value,
            "status": self.status,
            "phase": self.phase.value,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def run(
    factory: PackageFactory,
    generator: Any,
    shape: ManifestShape = ManifestShape.INIT_PREPARE_EMIT,
    ctx: Optional[BuildContext] = None,
) -> RunReport:
    """Entry point: init -> prepare files -> build the package graph -> emit.

    Manifest errors stop the run where they happen; nothing is emitted and
    the generator's `abort()` drops whatever prepare_files set up.
    """
    shape = ManifestShape(shape)
    pipeline = Pipeline(generator, shape)
    report = RunReport(package=factory_key(factory), shape=shape)
    try:
        if shape is not ManifestShape.EMIT_ONLY:
            pipeline.init()
        if shape is ManifestShape.INIT_PREPARE_EMIT:
            pipeline.prepare_files()
        root = build_package(factory, ctx)
        pipeline.emit(root)
    except ManifestError as e:
        logger.error("[%s] %s", e.diag.code, e)
        report.status = "error"
        report.diagnostics.append(e.diag)
    finally:
        if pipeline.phase is not Phase.EMITTED:
            abort = getattr(generator, "abort", None)
            if abort is not None:
                abort()
    report.phase = pipeline.phase
    return report
