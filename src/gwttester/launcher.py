from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .arguments import compile_arguments
from .config import ProjectContext
from .options import RunnerOptions
from .tests import TestUnit

log = logging.getLogger(__name__)

REPORTS_PROPERTY = "surefire.reports"
ARGS_PROPERTY = "gwt.args"


@dataclass(frozen=True)
class LaunchSpec:
    classpath: Tuple[Path, ...]
    main_class: str
    program_args: Tuple[str, ...]
    system_properties: Dict[str, str]
    timeout: int
    java: str = "java"
    jvm_args: Tuple[str, ...] = ()
    env: Dict[str, str] = field(default_factory=dict)
    capture: bool = True


@dataclass(frozen=True)
class Success:
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True)
class UnitFailure:
    reason: str
    status: Optional[object] = None
    stdout: str = ""
    stderr: str = ""
    cmdline: str = ""

    def describe(self, timeout: int) -> str:
        if self.reason == "timeout":
            return f"test timed out after {timeout} seconds"
        return f"expected success (0 expected but test returned {self.status})"


@dataclass(frozen=True)
class HarnessFailure:
    error: BaseException


ProcessOutcome = Union[Success, UnitFailure, HarnessFailure]


@dataclass
class ProcessResult:
    pid: Optional[int] = None
    status: Optional[object] = None
    stdout: str = ""
    stderr: str = ""
    timeout: bool = False


def java_executable(options: RunnerOptions, environ: Optional[Mapping[str, str]] = None) -> str:
    if options.jvm:
        return options.jvm
    if environ is None:
        environ = os.environ
    java_home = environ.get("JAVA_HOME")
    if java_home:
        extension = ".exe" if os.name == "nt" else ""
        return str(Path(java_home) / "bin" / f"java{extension}")
    return "java"


def build_launch_spec(
    options: RunnerOptions,
    project: ProjectContext,
    unit: TestUnit,
    classpath: Sequence[Path],
) -> LaunchSpec:
    reports = project.resolve(options.reports_directory)
    return LaunchSpec(
        classpath=tuple(classpath),
        main_class=options.main_class,
        program_args=(unit.qualified_name,),
        system_properties={
            REPORTS_PROPERTY: str(reports),
            ARGS_PROPERTY: compile_arguments(options, str(project.resolve(options.out))),
        },
        timeout=options.test_timeout,
        java=java_executable(options),
        jvm_args=tuple(shlex.split(options.extra_jvm_args or "")),
        env=dict(options.env_overrides),
        capture=options.capture,
    )


def command_line(spec: LaunchSpec) -> List[str]:
    cmd: List[str] = [spec.java]
    cmd.extend(spec.jvm_args)
    for name, value in spec.system_properties.items():
        cmd.append(f"-D{name}={value}")
    cmd.extend(["-classpath", os.pathsep.join(str(entry) for entry in spec.classpath)])
    cmd.append(spec.main_class)
    cmd.extend(spec.program_args)
    return cmd


def interpret_status(code: Optional[int]) -> Optional[object]:
    if code is None:
        return None
    if code >= 0:
        return code
    signal_code = -code
    try:
        signal_name = signal.Signals(signal_code).name
    except ValueError:
        signal_name = "unknown"
    return f"signal {signal_name}/{signal_code}"


def spawn_with_timeout(
    env_overrides: Dict[str, str],
    cmd: Sequence[str],
    timeout: int,
    capture: bool = True,
) -> ProcessResult:
    env = os.environ.copy()
    env.update(env_overrides)
    stream = subprocess.PIPE if capture else None
    result = ProcessResult()
    with subprocess.Popen(
        list(cmd),
        stdin=subprocess.DEVNULL,
        stdout=stream,
        stderr=stream,
        text=True,
        encoding="utf-8",
        errors="replace",
        env=env,
    ) as proc:
        result.pid = proc.pid
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
            result.stdout = stdout or ""
            result.stderr = stderr or ""
            result.status = interpret_status(proc.returncode)
        except subprocess.TimeoutExpired:
            result.timeout = True
            proc.kill()
            stdout, stderr = proc.communicate()
            result.stdout = stdout or ""
            result.stderr = stderr or ""
            result.status = "TIMEOUT"
        except KeyboardInterrupt:
            proc.kill()
            raise
    return result


def launch(spec: LaunchSpec) -> ProcessOutcome:
    cmd = command_line(spec)
    quoted_cmd = " ".join(shlex.quote(part) for part in cmd)
    log.debug("launching %s", quoted_cmd)
    try:
        result = spawn_with_timeout(spec.env, cmd, spec.timeout, spec.capture)
    except (OSError, ValueError) as exc:
        return HarnessFailure(exc)
    if result.timeout:
        return UnitFailure("timeout", result.status, result.stdout, result.stderr, quoted_cmd)
    if result.status != 0:
        return UnitFailure("exit", result.status, result.stdout, result.stderr, quoted_cmd)
    return Success(result.stdout, result.stderr)
