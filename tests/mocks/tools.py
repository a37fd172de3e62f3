"""Recording stand-ins for the raster engine binaries."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from src.pix.upload.raster import ToolResult

FINGERPRINT = "0123456789abcdef" * 4


@dataclass
class FakeToolRunner:
    """Answer like ImageMagick and friends without executing anything.

    ``convert`` writes a small file at its destination argument so later
    stages find real files to move.
    """

    dims: tuple[int, int] = (800, 600)
    findapng_output: str = "PNG\n"
    fingerprint_output: str = FINGERPRINT + "\n"
    failing: set[str] = field(default_factory=set)
    failing_outputs: tuple[str, ...] = ()
    calls: list[tuple[str, list[str]]] = field(default_factory=list)

    async def run(self, program: str, args: Sequence[str]) -> ToolResult:
        args = list(args)
        self.calls.append((program, args))
        if program in self.failing:
            return ToolResult(returncode=1, stdout="", stderr=f"{program} failed")
        if program == "identify":
            return ToolResult(returncode=0, stdout=f"{self.dims[0]} {self.dims[1]}\n", stderr="")
        if program == "findapng":
            return ToolResult(returncode=0, stdout=self.findapng_output, stderr="")
        if program == "perceptual":
            return ToolResult(returncode=0, stdout=self.fingerprint_output, stderr="")
        if program == "convert":
            dest = args[-1]
            if self.failing_outputs and dest.endswith(self.failing_outputs):
                return ToolResult(returncode=1, stdout="", stderr="convert: no decode delegate")
            if dest.startswith("jpg:"):
                dest = dest[len("jpg:"):]
            Path(dest).write_bytes(b"rendered")
            return ToolResult(returncode=0, stdout="", stderr="")
        return ToolResult(returncode=127, stdout="", stderr=f"unknown tool {program}")

    def calls_to(self, program: str) -> list[list[str]]:
        return [args for name, args in self.calls if name == program]
