from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

DEFAULT_INCLUDES = ("**/GwtTest*.java", "**/Gwt*Suite.java")
DEFAULT_MAIN_CLASS = "org.codehaus.mojo.gwt.test.MavenTestRunner"


@dataclass(frozen=True)
class RunnerOptions:
    skip: bool = False
    skip_tests: bool = False
    skip_exec: bool = False
    test_failure_ignore: bool = False
    includes: Tuple[str, ...] = DEFAULT_INCLUDES
    excludes: Tuple[str, ...] = ()
    out: str = "target/www-test"
    reports_directory: str = "target/surefire-reports"
    web_mode: bool = False
    production_mode: bool = False
    log_level: str = "INFO"
    mode: str = "manual"
    htmlunit: str = "FF17"
    selenium: Optional[str] = None
    test_timeout: int = 60
    user_agents: Optional[str] = None
    batch: Optional[str] = None
    show_ui: bool = False
    check_assertions: bool = False
    disable_class_metadata: bool = False
    disable_cast_checking: bool = False
    disable_run_async: bool = False
    draft_compile: bool = False
    cluster_functions: bool = True
    inline_literal_parameters: bool = True
    optimize_dataflow: bool = True
    ordinalize_enums: bool = True
    remove_duplicate_functions: bool = True
    incremental: bool = False
    source_level: Optional[str] = None
    work_dir: Optional[str] = None
    log_dir: Optional[str] = None
    namespace: Optional[str] = None
    js_interop_mode: Optional[str] = "NONE"
    precompile: Optional[str] = "simple"
    optimization_level: int = -1
    test_method_timeout: int = 5
    test_begin_timeout: int = 1
    tries: int = 1
    gwt_sdk_first_in_classpath: bool = False
    jvm: Optional[str] = None
    extra_jvm_args: str = "-Xmx512m"
    main_class: str = DEFAULT_MAIN_CLASS
    env_overrides: Dict[str, str] = field(default_factory=dict)
    capture: bool = True
    verbose: bool = False

    def skipped(self) -> bool:
        return self.skip or self.skip_tests or self.skip_exec

    def with_overrides(self, overrides: Mapping[str, object]) -> "RunnerOptions":
        return dataclasses.replace(self, **overrides)


# Property expressions accepted by -D, mapped to field names.
PROPERTY_NAMES = {
    "maven.test.skip": "skip",
    "skipTests": "skip_tests",
    "maven.test.skip.exec": "skip_exec",
    "maven.test.failure.ignore": "test_failure_ignore",
    "gwt.test.web": "web_mode",
    "gwt.test.prod": "production_mode",
    "gwt.logLevel": "log_level",
    "gwt.test.mode": "mode",
    "gwt.test.htmlunit": "htmlunit",
    "gwt.test.selenium": "selenium",
    "gwt.test.timeout": "test_timeout",
    "gwt.test.userAgents": "user_agents",
    "gwt.test.batch": "batch",
    "gwt.test.showUi": "show_ui",
    "gwt.checkAssertions": "check_assertions",
    "gwt.disableClassMetadata": "disable_class_metadata",
    "gwt.disableCastChecking": "disable_cast_checking",
    "gwt.disableRunAsync": "disable_run_async",
    "gwt.draftCompile": "draft_compile",
    "gwt.compiler.clusterFunctions": "cluster_functions",
    "gwt.compiler.inlineLiteralParameters": "inline_literal_parameters",
    "gwt.compiler.optimizeDataflow": "optimize_dataflow",
    "gwt.compiler.ordinalizeEnums": "ordinalize_enums",
    "gwt.compiler.removeDuplicateFunctions": "remove_duplicate_functions",
    "gwt.compiler.incremental": "incremental",
    "maven.compiler.source": "source_level",
    "gwt.workDir": "work_dir",
    "gwt.logDir": "log_dir",
    "gwt.namespace": "namespace",
    "gwt.jsInteropMode": "js_interop_mode",
    "gwt.test.precompile": "precompile",
    "gwt.compiler.optimizationLevel": "optimization_level",
    "gwt.testMethodTimeout": "test_method_timeout",
    "gwt.testBeginTimeout": "test_begin_timeout",
    "gwt.test.tries": "tries",
    "gwt.gwtSdkFirstInClasspath": "gwt_sdk_first_in_classpath",
    "gwt.jvm": "jvm",
    "gwt.extraJvmArgs": "extra_jvm_args",
    "gwt.test.mainClass": "main_class",
}

# Historical parameter aliases.
ALIASES = {
    "enableAssertions": "check_assertions",
    "compilePerFile": "incremental",
    "testTimeOut": "test_timeout",
    "reportsDir": "reports_directory",
}

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}

_FIELDS = {f.name: f for f in dataclasses.fields(RunnerOptions)}


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_CAMEL_NAMES = {camel_case(name): name for name in _FIELDS}


def field_name(name: str) -> str:
    """Map a field, parameter, alias or property name to a field name."""
    if name in _FIELDS:
        return name
    for table in (_CAMEL_NAMES, ALIASES, PROPERTY_NAMES):
        if name in table:
            return table[name]
    raise ValueError(f"unknown option {name}")


def _default_of(name: str) -> object:
    option = _FIELDS[name]
    if option.default is not dataclasses.MISSING:
        return option.default
    return option.default_factory()  # type: ignore[misc]


def parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def split_list(value: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def split_assignments(name: str, value: str) -> Dict[str, str]:
    assignments: Dict[str, str] = {}
    for part in split_list(value):
        key, sep, item = part.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"{name} expects NAME=VALUE pairs, got {value!r}")
        assignments[key.strip()] = item
    return assignments


def coerce_value(name: str, value: object) -> object:
    """Convert ``value`` to the type of the option field ``name``.

    Values coming from YAML may already have the right type; strings coming
    from the command line are parsed.
    """
    default = _default_of(name)
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        return parse_bool(str(value))
    if isinstance(default, int):
        if isinstance(value, bool):
            raise ValueError(f"{name} expects an integer, got {value!r}")
        try:
            return int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{name} expects an integer, got {value!r}") from exc
    if isinstance(default, tuple):
        if isinstance(value, str):
            return split_list(value)
        return tuple(str(entry).strip() for entry in value if str(entry).strip())  # type: ignore[union-attr]
    if isinstance(default, dict):
        if isinstance(value, Mapping):
            return {str(k): str(v) for k, v in value.items()}
        if isinstance(value, str):
            return split_assignments(name, value)
        raise ValueError(f"{name} expects a mapping, got {value!r}")
    if value is None:
        return None
    return str(value)


def resolve_overrides(raw: Mapping[str, object]) -> Dict[str, object]:
    """Normalize option names and coerce values for ``RunnerOptions``."""
    overrides: Dict[str, object] = {}
    for key, value in raw.items():
        name = field_name(key)
        overrides[name] = coerce_value(name, value)
    return overrides
