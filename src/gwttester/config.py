"""Project descriptor loading.

A project descriptor is a YAML file (``gwttest.yaml`` by default) that
describes where the compiled project lives::

    basedir: .
    build_directory: target
    test_source_roots: [src/test/java]
    source_roots: [src/main/java]
    resource_roots: [src/main/resources]
    test_classpath:
      - target/test-classes
      - target/classes
      - lib/junit-4.12.jar
    gwt_sdk:
      user: lib/gwt-user.jar
      dev: lib/gwt-dev.jar
    support:
      runner: lib/gwt-maven-plugin.jar
      reporter: lib/surefire-api.jar
    options:
      mode: htmlunit
      htmlunit: FF17,IE9
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

DEFAULT_DESCRIPTOR = "gwttest.yaml"


@dataclass
class ProjectContext:
    basedir: Path
    build_directory: Path = Path("target")
    test_source_roots: List[Path] = field(default_factory=list)
    source_roots: List[Path] = field(default_factory=list)
    resource_roots: List[Path] = field(default_factory=list)
    test_classpath: List[Path] = field(default_factory=list)
    gwt_user_jar: Optional[Path] = None
    gwt_dev_jar: Optional[Path] = None
    support: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.basedir = Path(self.basedir).resolve()
        self.build_directory = self._normalize_path(self.build_directory)
        self.test_source_roots = [self._normalize_path(p) for p in self.test_source_roots]
        self.source_roots = [self._normalize_path(p) for p in self.source_roots]
        self.resource_roots = [self._normalize_path(p) for p in self.resource_roots]
        self.test_classpath = [self._normalize_path(p) for p in self.test_classpath]
        if self.gwt_user_jar is not None:
            self.gwt_user_jar = self._normalize_path(self.gwt_user_jar)
        if self.gwt_dev_jar is not None:
            self.gwt_dev_jar = self._normalize_path(self.gwt_dev_jar)

    def _normalize_path(self, path: Union[Path, str]) -> Path:
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.basedir / candidate

    def resolve(self, path: Union[Path, str]) -> Path:
        return self._normalize_path(path)

    def default_options(self) -> Dict[str, str]:
        return {
            "out": str(self.build_directory / "www-test"),
            "reports_directory": str(self.build_directory / "surefire-reports"),
        }


def _require_mapping(value: Any, context: str, source: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{context}' must be a mapping in {source}")
    return value


def _require_list(value: Any, context: str, source: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"'{context}' must be a list in {source}")
    return [str(entry) for entry in value]


def parse_project_data(
    data: Any, descriptor_dir: Path, source: str = "<inline>"
) -> ProjectContext:
    data = _require_mapping(data, "project", source)
    basedir = descriptor_dir / str(data.get("basedir", "."))
    sdk = _require_mapping(data.get("gwt_sdk"), "gwt_sdk", source)
    support = _require_mapping(data.get("support"), "support", source)
    options = _require_mapping(data.get("options"), "options", source)
    return ProjectContext(
        basedir=basedir,
        build_directory=Path(str(data.get("build_directory", "target"))),
        test_source_roots=_require_list(
            data.get("test_source_roots", ["src/test/java"]), "test_source_roots", source
        ),
        source_roots=_require_list(data.get("source_roots"), "source_roots", source),
        resource_roots=_require_list(data.get("resource_roots"), "resource_roots", source),
        test_classpath=_require_list(data.get("test_classpath"), "test_classpath", source),
        gwt_user_jar=Path(str(sdk["user"])) if sdk.get("user") else None,
        gwt_dev_jar=Path(str(sdk["dev"])) if sdk.get("dev") else None,
        support={str(k): str(v) for k, v in support.items()},
        options=dict(options),
    )


def load_project(descriptor: Union[str, Path]) -> ProjectContext:
    path = Path(descriptor)
    if not path.is_file():
        raise FileNotFoundError(f"project descriptor not found: {path}")
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        raise ValueError(f"empty project descriptor: {path}")
    return parse_project_data(data, path.resolve().parent, source=str(path))
