__all__ = ['model', 'linker', 'context', 'pipeline', 'plan', 'generator', 'errors']

from .model import Artifact, ArtifactKind, Package
from .linker import link
from .context import BuildContext, PackageRegistry, build_package, package_factory, register_default
from .pipeline import ManifestShape, Phase, Pipeline, RunReport, run
from .errors import (
    ManifestError, Diagnostic, EnvironmentInitError, DuplicateDependency, SelfDependency,
    MissingArtifactKind, PackageConflict, FrozenPackage, DependencyCycle,
    OutOfOrderPhase, AlreadyEmitted, EmitError,
)
