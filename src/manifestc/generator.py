"""Generators consume a finished package graph.

`Generator` is the contract the pipeline calls into. `JsonPlanGenerator`
writes the plan document (see manifestc.plan) that native project emitters
read, together with a small build report.
"""

from __future__ import annotations
import json
import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .config import DEFAULT_TOOLCHAINS, GeneratorConfig
from .errors import EmitError, EnvironmentInitError
from .model import Package
from .plan import build_plan, validate_plan

logger = logging.getLogger(__name__)

REPORT_NAME = "build_report.json"


class Generator(ABC):
    @abstractmethod
    def init(self) -> bool:
        ...

    def prepare_files(self, root: Optional[Package]) -> None:
        pass

    @abstractmethod
    def generate(self, root: Package) -> None:
        ...

    def abort(self) -> None:
        """Called when a run ends without emitting; drop anything prepared."""


def find_toolchain(preferred: Optional[str] = None) -> Optional[str]:
    candidates = [preferred] if preferred else list(DEFAULT_TOOLCHAINS)
    for c in candidates:
        found = shutil.which(c)
        if found:
            return found
        if preferred and Path(c).is_file() and os.access(c, os.X_OK):
            return str(Path(c).resolve())
    return None


def plan_file_name(root: Package) -> str:
    return f"{root.name}.plan.json"


class JsonPlanGenerator(Generator):
    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        self.output_dir: Optional[Path] = None
        self.toolchain: Optional[str] = None
        self._staging: Optional[Path] = None

    def init(self) -> bool:
        out = Path(self.config.output_dir).resolve()
        try:
            out.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("output directory %s is not usable: %s", out, e)
            return False
        if not os.access(out, os.W_OK):
            logger.error("output directory %s is not writable", out)
            return False

        self.toolchain = find_toolchain(self.config.toolchain)
        if self.toolchain is None:
            if self.config.require_toolchain:
                logger.error("no toolchain found (tried: %s)", self.config.toolchain or ", ".join(DEFAULT_TOOLCHAINS))
                return False
            logger.warning("no toolchain found; the plan will not name one")
        else:
            logger.info("toolchain: %s", self.toolchain)

        self.output_dir = out
        return True

    def prepare_files(self, root: Optional[Package]) -> None:
        self._open_staging()

    def _open_staging(self) -> Path:
        if self.output_dir is None:
            raise EnvironmentInitError("Generator used before init().")
        if self._staging is None:
            self._staging = Path(tempfile.mkdtemp(prefix=".manifestc-", dir=self.output_dir))
            logger.debug("staging directory %s", self._staging)
        return self._staging

    def _report(self, root: Package, doc: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "status": "ok",
            "root": root.name,
            "plan": plan_file_name(root),
            "toolchain": self.toolchain,
            "packages": len(doc["packages"]),
            "artifacts": len(doc["link_order"]),
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }

    def generate(self, root: Package) -> None:
        staging = self._open_staging()
        try:
            doc = build_plan(root)
            try:
                validate_plan(doc)
            except jsonschema.ValidationError as e:
                raise EmitError(f"Plan for '{root.name}' does not match the plan schema: {e.message}", subject=root.name)

            files = {
                plan_file_name(root): doc,
                REPORT_NAME: self._report(root, doc),
            }
            try:
                for name, payload in files.items():
                    (staging / name).write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
                for name in files:
                    os.replace(staging / name, self.output_dir / name)
            except OSError as e:
                raise EmitError(f"Writing the plan for '{root.name}' failed: {e}", subject=root.name)
            logger.info("wrote %s", self.output_dir / plan_file_name(root))
        finally:
            self._drop_staging()

    def abort(self) -> None:
        self._drop_staging()

    def _drop_staging(self) -> None:
        if self._staging is not None:
            shutil.rmtree(self._staging, ignore_errors=True)
            logger.debug("removed staging directory %s", self._staging)
            self._staging = None
