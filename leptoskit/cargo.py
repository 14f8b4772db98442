"""Workspace metadata as reported by ``cargo metadata``."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Union

from .paths import PathError, clean_windows_path, unbase

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class Target:
    """One build target of a package."""

    name: str
    kind: tuple[str, ...] = ()
    crate_types: tuple[str, ...] = ()
    src_path: Optional[Path] = None

    @classmethod
    def _from_json(cls, data: Mapping[str, Any]) -> "Target":
        src = data.get("src_path")
        return cls(
            name=data["name"],
            kind=tuple(data.get("kind", ())),
            crate_types=tuple(data.get("crate_types", ())),
            src_path=Path(src) if src else None,
        )


@dataclass
class Dependency:
    """A declared dependency; ``path`` is set for path dependencies."""

    name: str
    path: Optional[Path] = None

    @classmethod
    def _from_json(cls, data: Mapping[str, Any]) -> "Dependency":
        path = data.get("path")
        return cls(name=data["name"], path=Path(path) if path else None)


@dataclass
class Package:
    """A package of the workspace or its dependency graph."""

    name: str
    id: str
    manifest_path: Path
    targets: list[Target] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)

    @classmethod
    def _from_json(cls, data: Mapping[str, Any]) -> "Package":
        return cls(
            name=data["name"],
            id=data["id"],
            manifest_path=Path(data["manifest_path"]),
            targets=[Target._from_json(t) for t in data.get("targets", ())],
            dependencies=[Dependency._from_json(d) for d in data.get("dependencies", ())],
        )

    def has_bin_target(self) -> bool:
        return any("bin" in target.kind for target in self.targets)

    def bin_targets(self) -> Iterator[Target]:
        return (target for target in self.targets if "bin" in target.kind)

    def cdylib_target(self) -> Optional[Target]:
        return next((t for t in self.targets if "cdylib" in t.crate_types), None)

    def target_list(self) -> str:
        """Human readable ``name (crate types)`` list of all targets."""
        return ", ".join(
            f"{target.name} ({', '.join(target.crate_types)})" for target in self.targets
        )

    def path_dependencies(self) -> list[Path]:
        return [dep.path for dep in self.dependencies if dep.path is not None]


@dataclass
class Resolve:
    """The resolved dependency graph: package id to the ids it depends on."""

    nodes: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def _from_json(cls, data: Mapping[str, Any]) -> "Resolve":
        nodes: dict[str, tuple[str, ...]] = {}
        for node in data.get("nodes", ()):
            deps = tuple(dep["pkg"] for dep in node.get("deps", ()))
            nodes.setdefault(node["id"], deps)
        return cls(nodes=nodes)

    def deps_for(self, package_id: str) -> set[str]:
        """Ids of ``package_id`` and everything it depends on, transitively."""
        found: set[str] = set()
        pending = [package_id]
        while pending:
            current = pending.pop()
            if current in found or current not in self.nodes:
                continue
            found.add(current)
            pending.extend(self.nodes[current])
        return found


@dataclass
class Metadata:
    """The parts of ``cargo metadata`` output this tool relies on."""

    workspace_root: Path
    target_directory: Path
    packages: list[Package] = field(default_factory=list)
    resolve: Optional[Resolve] = None

    @classmethod
    def from_json(cls, data: Union[str, bytes, bytearray, Mapping[str, Any]]) -> "Metadata":
        """Build from the JSON document or its already decoded mapping."""
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        resolve = data.get("resolve")
        return cls(
            workspace_root=Path(data["workspace_root"]),
            target_directory=Path(data["target_directory"]),
            packages=[Package._from_json(p) for p in data.get("packages", ())],
            resolve=Resolve._from_json(resolve) if resolve else None,
        )

    @classmethod
    def load_cleaned(cls, manifest_path: PathLike) -> "Metadata":
        """Run ``cargo metadata`` and normalise the Windows paths it reports."""
        cargo = os.environ.get("CARGO", "cargo")
        command = [
            cargo,
            "metadata",
            "--format-version",
            "1",
            "--manifest-path",
            os.fspath(manifest_path),
        ]
        try:
            completed = subprocess.run(command, capture_output=True, check=True)
        except OSError as exc:
            raise RuntimeError(f"Could not run {cargo}: {exc}") from exc
        except subprocess.CalledProcessError as exc:
            stderr = exc.stderr.decode(errors="replace").strip()
            raise RuntimeError(f"cargo metadata failed: {stderr}") from exc

        metadata = cls.from_json(completed.stdout)
        metadata.workspace_root = clean_windows_path(metadata.workspace_root)
        metadata.target_directory = clean_windows_path(metadata.target_directory)
        for package in metadata.packages:
            package.manifest_path = clean_windows_path(package.manifest_path)
            for dependency in package.dependencies:
                if dependency.path is not None:
                    dependency.path = clean_windows_path(dependency.path)
        return metadata

    def rel_target_dir(self) -> Path:
        return Path(os.path.relpath(self.target_directory, self.workspace_root))

    def package_for(self, package_id: str) -> Optional[Package]:
        return next((p for p in self.packages if p.id == package_id), None)

    def path_dependencies(self, package_id: str) -> list[Path]:
        """Path dependencies of the package and all packages it depends on."""
        if self.resolve is None:
            return []
        ids = self.resolve.deps_for(package_id)
        return [
            path
            for package in self.packages
            if package.id in ids
            for path in package.path_dependencies()
        ]

    def src_path_dependencies(self, package_id: str) -> list[Path]:
        """``src`` directories of the path dependencies, relative to the workspace."""
        result = []
        for dep_path in self.path_dependencies(package_id):
            try:
                path = unbase(dep_path, self.workspace_root)
            except PathError:
                path = dep_path
            result.append(Path("src") if path == Path(".") else path / "src")
        return result