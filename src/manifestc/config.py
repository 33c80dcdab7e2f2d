from __future__ import annotations
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from .pipeline import ManifestShape

ENV_OUTPUT_DIR = "MANIFESTC_OUTPUT_DIR"
ENV_TOOLCHAIN = "MANIFESTC_TOOLCHAIN"
ENV_REQUIRE_TOOLCHAIN = "MANIFESTC_REQUIRE_TOOLCHAIN"
ENV_SHAPE = "MANIFESTC_SHAPE"

DEFAULT_OUTPUT_DIR = "target"
# Probed in order when no toolchain is configured.
DEFAULT_TOOLCHAINS = ("c++", "clang++", "g++", "cl")

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class GeneratorConfig:
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    toolchain: Optional[str] = None       # None -> probe DEFAULT_TOOLCHAINS
    require_toolchain: bool = False
    shape: ManifestShape = ManifestShape.INIT_PREPARE_EMIT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GeneratorConfig":
        env = os.environ if environ is None else environ
        shape = env.get(ENV_SHAPE) or ManifestShape.INIT_PREPARE_EMIT.value
        try:
            shape = ManifestShape(shape)
        except ValueError:
            valid = ", ".join(s.value for s in ManifestShape)
            raise ValueError(f"{ENV_SHAPE}={shape!r} is not a manifest shape (expected one of: {valid})") from None
        return cls(
            output_dir=Path(env.get(ENV_OUTPUT_DIR) or DEFAULT_OUTPUT_DIR),
            toolchain=env.get(ENV_TOOLCHAIN) or None,
            require_toolchain=(env.get(ENV_REQUIRE_TOOLCHAIN, "").strip().lower() in _TRUE),
            shape=shape,
        )

    def override(self, **changes) -> "GeneratorConfig":
        """Copy with every non-None keyword applied (CLI flags over env)."""
        changes = {k: v for k, v in changes.items() if v is not None}
        if "output_dir" in changes:
            changes["output_dir"] = Path(changes["output_dir"])
        if "shape" in changes:
            changes["shape"] = ManifestShape(changes["shape"])
        return replace(self, **changes)
