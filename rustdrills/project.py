"""Generation of a rust-project.json file for rust-analyzer."""

from __future__ import annotations

import glob
import json
import os
import subprocess
from dataclasses import asdict, dataclass, field


@dataclass
class Crate:
    """One exercise file seen by rust-analyzer as a crate."""

    root_module: str
    edition: str = "2021"
    deps: list[str] = field(default_factory=list)
    # Lets rust-analyzer work inside #[test] blocks.
    cfg: list[str] = field(default_factory=lambda: ["test"])

    def to_dict(self) -> dict:
        """Return the crate as it appears in rust-project.json."""
        return asdict(self)


@dataclass
class RustAnalyzerProject:
    """The contents of rust-project.json."""

    sysroot_src: str = ""
    crates: list[Crate] = field(default_factory=list)

    def to_json(self) -> str:
        """Serialise the project as compact JSON."""
        data = {
            "sysroot_src": self.sysroot_src,
            "crates": [crate.to_dict() for crate in self.crates],
        }
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)

    def write_to_disk(self, path: str | os.PathLike = "./rust-project.json") -> None:
        """Write the project file."""
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(self.to_json())

    def add_path(self, path: str | os.PathLike) -> None:
        """Add a crate for the path if it names a .rs file."""
        if os.path.splitext(os.path.basename(path))[1] == ".rs" and not os.path.basename(
            path
        ).startswith(".rs"):
            self.crates.append(Crate(root_module=os.fspath(path)))

    def exercises_to_json(self, root: str | os.PathLike = "./exercises") -> None:
        """Add a crate for every .rs file found under root."""
        pattern = os.path.join(os.fspath(root), "**", "*")
        for path in sorted(glob.glob(pattern, recursive=True, include_hidden=True)):
            self.add_path(path)

    def get_sysroot_src(self) -> None:
        """Find the standard library sources from RUST_SRC_PATH or rustc."""
        env_path = os.environ.get("RUST_SRC_PATH")
        if env_path is not None:
            self.sysroot_src = env_path
            return
        result = subprocess.run(
            ["rustc", "--print", "sysroot"], capture_output=True, check=False
        )
        output = (result.stdout or b"").decode("utf-8", errors="replace")
        words = output.split()
        toolchain = words[0] if words else output
        print(f"Determined toolchain: {toolchain}\n")
        self.sysroot_src = os.path.join(toolchain, "lib", "rustlib", "src", "rust", "library")