import os
from pathlib import Path

import pytest

from gwttester.classpath import (
    assemble_classpath,
    deduplicate,
    locate_support_entry,
    normalize_location,
)
from gwttester.errors import ClasspathError
from gwttester.options import RunnerOptions


def expected(project, *names):
    return [project.basedir / name for name in names]


def test_sdk_last_by_default(project):
    classpath = assemble_classpath(RunnerOptions(), project, environ={})
    assert classpath == expected(
        project,
        "target/test-classes",
        "target/classes",
        "lib/junit.jar",
        "lib/gwt-user.jar",
        "lib/gwt-dev.jar",
        "src/main/java",
        "lib/runner.jar",
        "lib/reporter.jar",
    )


def test_sdk_first(project):
    options = RunnerOptions(gwt_sdk_first_in_classpath=True)
    classpath = assemble_classpath(options, project, environ={})
    assert classpath == expected(
        project,
        "lib/gwt-user.jar",
        "lib/gwt-dev.jar",
        "target/test-classes",
        "target/classes",
        "lib/junit.jar",
        "src/main/java",
        "lib/runner.jar",
        "lib/reporter.jar",
    )


def test_duplicates_keep_first_position(project):
    project.test_classpath.append(project.basedir / "lib" / "gwt-dev.jar")
    options = RunnerOptions(gwt_sdk_first_in_classpath=True)
    classpath = assemble_classpath(options, project, environ={})
    assert classpath.count(project.basedir / "lib" / "gwt-dev.jar") == 1
    assert classpath[1] == project.basedir / "lib" / "gwt-dev.jar"
    assert len(classpath) == len(set(classpath))


def test_deduplicate_normalizes_paths():
    entries = [Path("/a/b.jar"), Path("/a/./b.jar"), Path("/c")]
    assert deduplicate(entries) == [Path("/a/b.jar"), Path("/c")]


@pytest.mark.skipif(os.name == "nt", reason="posix paths")
@pytest.mark.parametrize(
    "location,path",
    [
        ("/opt/lib/plugin.jar", "/opt/lib/plugin.jar"),
        ("file:/opt/classes/", "/opt/classes"),
        ("file:///opt/my%20lib/plugin.jar", "/opt/my lib/plugin.jar"),
        (
            "jar:file:/opt/my%20lib/plugin.jar!/org/codehaus/mojo/gwt/test/MavenTestRunner.class",
            "/opt/my lib/plugin.jar",
        ),
    ],
)
def test_normalize_location(location, path):
    assert normalize_location(location) == Path(path)


def test_environment_overrides_support_manifest(project, tmp_path):
    other = tmp_path / "other dir" / "runner.jar"
    other.parent.mkdir()
    other.write_text("", encoding="utf-8")
    environ = {"GWTTESTER_RUNNER_PATH": other.as_uri()}
    assert locate_support_entry("runner", project, environ) == other


def test_missing_support_entry_is_fatal(project):
    del project.support["reporter"]
    with pytest.raises(ClasspathError, match="reporter"):
        assemble_classpath(RunnerOptions(), project, environ={})


def test_support_entry_must_exist(project):
    project.support["runner"] = "lib/missing.jar"
    with pytest.raises(ClasspathError, match="not found"):
        assemble_classpath(RunnerOptions(), project, environ={})


def test_missing_sdk_jar_is_fatal(project):
    project.gwt_dev_jar = None
    with pytest.raises(ClasspathError, match="gwt-dev"):
        assemble_classpath(RunnerOptions(), project, environ={})
    project.gwt_dev_jar = project.basedir / "lib" / "nope.jar"
    with pytest.raises(ClasspathError, match="gwt-dev"):
        assemble_classpath(RunnerOptions(), project, environ={})
