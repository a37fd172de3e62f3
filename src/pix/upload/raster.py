"""Process-boundary adapters for the raster engine and auxiliary binaries.

The tools are treated as opaque: ImageMagick ``identify``/``convert`` for
metadata and transforms, a fingerprint extractor reading a 16x16 raw
grayscale raster, and a classifier telling animated PNGs from static ones.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ..config import ToolPaths
from .upload_errors import HashError, ProcessingError

logger = logging.getLogger(__name__)

FINGERPRINT_LENGTH = 64
_HEX = re.compile(r"^[0-9a-fA-F]+$")


@dataclass(frozen=True, slots=True)
class ToolResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ToolRunner(Protocol):
    async def run(self, program: str, args: Sequence[str]) -> ToolResult:
        ...


@dataclass(slots=True)
class SubprocessToolRunner:
    """Execute a tool without a shell and capture its output."""

    async def run(self, program: str, args: Sequence[str]) -> ToolResult:
        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return ToolResult(returncode=127, stdout="", stderr=str(exc))
        stdout, stderr = await process.communicate()
        return ToolResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


@dataclass(slots=True)
class RasterEngine:
    """ImageMagick front-end."""

    tools: ToolPaths
    runner: ToolRunner = field(default_factory=SubprocessToolRunner)

    async def identify(self, tagged_path: str) -> tuple[int, int]:
        result = await self.runner.run(
            self.tools.identify, ["-format", "%w %h\n", f"{tagged_path}[0]"]
        )
        if not result.ok:
            logger.error(
                "raster.identify.failed",
                extra={"path": tagged_path, "stderr": result.stderr.strip()},
            )
            raise ProcessingError("Bad image.")
        try:
            width, height = (int(part) for part in result.stdout.split()[:2])
        except ValueError as exc:
            logger.error(
                "raster.identify.unparseable",
                extra={"path": tagged_path, "stdout": result.stdout.strip()},
            )
            raise ProcessingError("Bad image.") from exc
        return width, height

    async def convert(self, args: Sequence[str], *, error: str = "Conversion error.") -> None:
        result = await self.runner.run(self.tools.convert, list(args))
        if not result.ok:
            logger.error(
                "raster.convert.failed",
                extra={"convert_args": list(args), "stderr": result.stderr.strip()},
            )
            raise ProcessingError(error)


@dataclass(slots=True)
class AnimationClassifier:
    """Tell animated PNGs apart from static ones."""

    tools: ToolPaths
    runner: ToolRunner = field(default_factory=SubprocessToolRunner)

    async def is_animated(self, path: Path) -> bool:
        result = await self.runner.run(self.tools.findapng, [str(path)])
        if result.ok and result.stdout.startswith("APNG"):
            return True
        if result.ok and result.stdout.startswith("PNG"):
            return False
        logger.error(
            "raster.findapng.failed",
            extra={"path": str(path), "stderr": result.stderr.strip()},
        )
        raise ProcessingError("Bad image.")


@dataclass(slots=True)
class FingerprintExtractor:
    """Run the perceptual hash binary over a raw grayscale raster."""

    tools: ToolPaths
    runner: ToolRunner = field(default_factory=SubprocessToolRunner)

    async def extract(self, raster: Path) -> str:
        result = await self.runner.run(self.tools.perceptual, [str(raster)])
        if not result.ok:
            logger.error(
                "raster.perceptual.failed",
                extra={"path": str(raster), "stderr": result.stderr.strip()},
            )
            raise HashError("Hashing error.")
        fingerprint = result.stdout.strip()
        if len(fingerprint) != FINGERPRINT_LENGTH or not _HEX.match(fingerprint):
            logger.error(
                "raster.perceptual.bad_output",
                extra={"path": str(raster), "stdout": fingerprint[:128]},
            )
            raise HashError("Hashing problem.")
        return fingerprint.lower()
