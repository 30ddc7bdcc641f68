import argparse
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from .config import DEFAULT_DESCRIPTOR, ProjectContext, load_project
from .options import RunnerOptions, resolve_overrides


def load_project_or_default(
    parser: argparse.ArgumentParser, descriptor: Optional[str]
) -> ProjectContext:
    if descriptor is not None:
        try:
            return load_project(descriptor)
        except (OSError, ValueError) as exc:
            parser.error(str(exc))
    default = Path.cwd() / DEFAULT_DESCRIPTOR
    if default.is_file():
        try:
            return load_project(default)
        except (OSError, ValueError) as exc:
            parser.error(str(exc))
    return ProjectContext(
        basedir=Path.cwd(),
        test_source_roots=[Path("src/test/java")],
        test_classpath=[Path("target/test-classes"), Path("target/classes")],
    )


def parse_assignment(
    parser: argparse.ArgumentParser, flag: str, assignment: str
) -> Tuple[str, str]:
    if "=" not in assignment:
        # bare -Dname means name=true
        if flag == "-D":
            return assignment, "true"
        parser.error(f"{flag} requires NAME=VALUE")
    name, value = assignment.split("=", 1)
    return name, value


def absolutize(project: ProjectContext, overrides: Dict[str, object]) -> None:
    for name in ("work_dir", "log_dir"):
        value = overrides.get(name)
        if isinstance(value, str) and value.strip():
            overrides[name] = str(project.resolve(value))


def process_arguments(argv: Sequence[str]) -> Tuple[RunnerOptions, ProjectContext]:
    parser = argparse.ArgumentParser(description="Run GWT tests in forked JVMs")
    parser.add_argument(
        "-p",
        "--project",
        dest="project",
        metavar="FILE",
        help=f"Project descriptor (default: ./{DEFAULT_DESCRIPTOR})",
    )
    parser.add_argument(
        "-D",
        dest="properties",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set an option by property or parameter name",
    )
    parser.add_argument("--skip", action="store_true", default=None)
    parser.add_argument("--skip-tests", dest="skip_tests", action="store_true", default=None)
    parser.add_argument("--skip-exec", dest="skip_exec", action="store_true", default=None)
    parser.add_argument(
        "--test-failure-ignore",
        dest="test_failure_ignore",
        action=argparse.BooleanOptionalAction,
        default=None,
    )
    parser.add_argument("--includes", help="Comma separated ant-style include patterns")
    parser.add_argument("--excludes", help="Comma separated ant-style exclude patterns")
    parser.add_argument("--out", help="Output directory for code generated for tests")
    parser.add_argument("--reports-directory", dest="reports_directory")
    parser.add_argument("--mode", help="manual, htmlunit, selenium or a custom run style")
    parser.add_argument("--htmlunit", metavar="BROWSERS")
    parser.add_argument("--selenium", metavar="TARGET")
    parser.add_argument("--timeout", dest="test_timeout", type=int, metavar="SECONDS")
    parser.add_argument("--jvm", metavar="PATH")
    parser.add_argument(
        "--env", dest="env", action="append", default=[], metavar="NAME=VALUE"
    )
    parser.add_argument(
        "--capture", action=argparse.BooleanOptionalAction, default=None
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=None)

    args = parser.parse_args(list(argv))
    project = load_project_or_default(parser, args.project)

    layers = [project.default_options(), project.options]

    explicit = {
        name: getattr(args, name)
        for name in (
            "skip",
            "skip_tests",
            "skip_exec",
            "test_failure_ignore",
            "includes",
            "excludes",
            "out",
            "reports_directory",
            "mode",
            "htmlunit",
            "selenium",
            "test_timeout",
            "jvm",
            "capture",
            "verbose",
        )
        if getattr(args, name) is not None
    }
    env_overrides: Dict[str, str] = {}
    for assignment in args.env:
        name, value = parse_assignment(parser, "--env", assignment)
        env_overrides[name] = value
    if env_overrides:
        explicit["env_overrides"] = env_overrides
    layers.append(explicit)

    properties: Dict[str, str] = {}
    for assignment in args.properties:
        name, value = parse_assignment(parser, "-D", assignment)
        properties[name] = value
    layers.append(properties)

    overrides: Dict[str, object] = {}
    for layer in layers:
        try:
            overrides.update(resolve_overrides(layer))
        except ValueError as exc:
            parser.error(str(exc))
    absolutize(project, overrides)

    return RunnerOptions().with_overrides(overrides), project
