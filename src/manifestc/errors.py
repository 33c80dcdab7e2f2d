from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Diagnostic:
    code: str
    severity: str
    message: str
    remediation: str
    subject: Optional[str] = None   # package or artifact id the error is about

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ManifestError(Exception):
    """Base for every fatal manifest/pipeline error. Never retried."""

    code = "MFC-0000"
    remediation = ""

    def __init__(self, message: str, *, subject: Optional[str] = None, remediation: Optional[str] = None):
        super().__init__(message)
        self.diag = Diagnostic(
            code=self.code,
            severity="fatal",
            message=message,
            remediation=remediation if remediation is not None else self.remediation,
            subject=subject,
        )


class EnvironmentInitError(ManifestError):
    code = "MFC-ENV-0001"
    remediation = "Check the output directory and toolchain settings (MANIFESTC_OUTPUT_DIR, MANIFESTC_TOOLCHAIN)."


class DuplicateDependency(ManifestError):
    code = "MFC-LNK-0001"
    remediation = "Remove the repeated dependency from the manifest."


class SelfDependency(ManifestError):
    code = "MFC-LNK-0002"
    remediation = "An artifact cannot depend on itself; drop the edge."


class MissingArtifactKind(ManifestError):
    code = "MFC-PKG-0001"
    remediation = "Declare the artifact in the dependency package or stop requesting it."


class PackageConflict(ManifestError):
    code = "MFC-PKG-0002"
    remediation = "Package names must be unique per run and rebuild to the same structure."


class FrozenPackage(ManifestError):
    code = "MFC-PKG-0003"
    remediation = "Finish wiring the package before handing it to the pipeline."


class DependencyCycle(ManifestError):
    code = "MFC-PKG-0004"
    remediation = "Break the cycle; a package may not transitively depend on itself."


class InvalidName(ManifestError):
    code = "MFC-PKG-0005"
    remediation = "Package and artifact names may only use letters, digits, '_', '.' and '-'."


class OutOfOrderPhase(ManifestError):
    code = "MFC-PHS-0001"
    remediation = "Call init(), then prepare_files(), then emit()."


class AlreadyEmitted(ManifestError):
    code = "MFC-PHS-0002"
    remediation = "A pipeline emits once; create a new pipeline for another run."


class EmitError(ManifestError):
    code = "MFC-GEN-0001"
    remediation = "Check that the output directory is writable; nothing was written."
