"""Build-time version information and its printed form."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import TextIO


@dataclass(frozen=True)
class BuildInfo:
    """The version and commit a build was made from."""

    version: str = ""
    git_sha: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the info keyed as in the printed JSON."""
        return {"version": self.version, "git_sha": self.git_sha}


INFO = BuildInfo()


def print_version(stream: TextIO | None = None, info: BuildInfo | None = None) -> None:
    """Write the build info as compact JSON, with no trailing newline."""
    if stream is None:
        stream = sys.stdout
    if info is None:
        info = INFO
    stream.write(json.dumps(info.to_dict(), separators=(",", ":"), ensure_ascii=False))