from pathlib import Path
from typing import Iterable

import pytest

from gwttester.config import ProjectContext


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")
    return path


def write_sources(root: Path, names: Iterable[str]) -> None:
    for name in names:
        touch(root / name)


@pytest.fixture
def project(tmp_path: Path) -> ProjectContext:
    for jar in ("gwt-user.jar", "gwt-dev.jar", "junit.jar", "runner.jar", "reporter.jar"):
        touch(tmp_path / "lib" / jar)
    (tmp_path / "target" / "classes").mkdir(parents=True)
    (tmp_path / "target" / "test-classes").mkdir(parents=True)
    (tmp_path / "src" / "main" / "java").mkdir(parents=True)
    (tmp_path / "src" / "test" / "java").mkdir(parents=True)
    return ProjectContext(
        basedir=tmp_path,
        test_source_roots=[Path("src/test/java")],
        source_roots=[Path("src/main/java")],
        test_classpath=[
            Path("target/test-classes"),
            Path("target/classes"),
            Path("lib/junit.jar"),
        ],
        gwt_user_jar=Path("lib/gwt-user.jar"),
        gwt_dev_jar=Path("lib/gwt-dev.jar"),
        support={"runner": "lib/runner.jar", "reporter": "lib/reporter.jar"},
    )
