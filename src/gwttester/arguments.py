from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from .errors import HarnessError
from .options import RunnerOptions

ESCAPED_CHARS = frozenset('\\" \t\r\n')


def quote(value: str) -> str:
    escaped = "".join("\\" + char if char in ESCAPED_CHARS else char for char in value)
    if escaped == value:
        return value
    return f'"{escaped}"'


def unquote(token: str) -> str:
    if len(token) < 2 or not (token.startswith('"') and token.endswith('"')):
        return token
    result: List[str] = []
    escaped = False
    for char in token[1:-1]:
        if escaped:
            result.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        else:
            result.append(char)
    if escaped:
        raise ValueError(f"dangling escape in {token!r}")
    return "".join(result)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


BOOLEAN_FLAGS = [
    ("check_assertions", "-checkAssertions", "-nocheckAssertions"),
    ("cluster_functions", "-XclusterFunctions", "-XnoclusterFunctions"),
    ("disable_cast_checking", "-XnocheckCasts", "-XcheckCasts"),
    ("disable_class_metadata", "-XnoclassMetadata", "-XclassMetadata"),
    ("disable_run_async", "-XnocodeSplitting", "-XcodeSplitting"),
    ("draft_compile", "-draftCompile", "-nodraftCompile"),
    ("inline_literal_parameters", "-XinlineLiteralParameters", "-XnoinlineLiteralParameters"),
    ("optimize_dataflow", "-XoptimizeDataflow", "-XnooptimizeDataflow"),
    ("ordinalize_enums", "-XordinalizeEnums", "-XnoordinalizeEnums"),
    ("remove_duplicate_functions", "-XremoveDuplicateFunctions", "-XnoremoveDuplicateFunctions"),
    ("show_ui", "-showUi", "-noshowUi"),
]

OPTIONAL_STRING_FLAGS = [
    ("precompile", "-precompile"),
    ("log_dir", "-logdir"),
    ("work_dir", "-workDir"),
    ("namespace", "-Xnamespace"),
    ("js_interop_mode", "-XjsInteropMode"),
]


def run_style(options: RunnerOptions) -> Optional[str]:
    mode = options.mode or ""
    selector = mode.strip().lower()
    if selector == "manual":
        return "Manual:1"
    if selector == "htmlunit":
        return quote(f"HtmlUnit:{options.htmlunit or ''}")
    if selector == "selenium":
        return quote(f"Selenium:{options.selenium or ''}")
    if selector:
        return quote(mode)
    return None


def compile_arguments(options: RunnerOptions, output_dir: str) -> str:
    """Render ``options`` as the argument string read by the child from ``gwt.args``.

    The result depends on nothing but the arguments, so identical options
    always produce byte-identical strings.
    """
    parts: List[str] = ["-war", quote(output_dir), "-logLevel", quote(options.log_level)]
    parts.append("-nodevMode" if options.web_mode or options.production_mode else "-devMode")
    for name, enabled, disabled in BOOLEAN_FLAGS:
        parts.append(enabled if getattr(options, name) else disabled)
    if not is_blank(options.source_level):
        parts.extend(["-sourceLevel", quote(options.source_level)])
    parts.extend(["-testBeginTimeout", str(options.test_begin_timeout)])
    parts.extend(["-testMethodTimeout", str(options.test_method_timeout)])
    parts.extend(["-Xtries", str(options.tries)])
    parts.append("-incremental" if options.incremental else "-noincremental")
    if options.optimization_level >= 0:
        parts.extend(["-optimize", str(options.optimization_level)])
    for name, flag in OPTIONAL_STRING_FLAGS:
        value = getattr(options, name)
        if not is_blank(value):
            parts.extend([flag, quote(value)])
    style = run_style(options)
    if style is not None:
        parts.extend(["-runStyle", style])
    if not is_blank(options.user_agents):
        parts.extend(["-userAgents", quote(options.user_agents)])
    if not is_blank(options.batch):
        parts.extend(["-batch", quote(options.batch)])
    return " ".join(parts)


def prepare_output_directory(out: Union[str, Path], basedir: Path) -> Path:
    """Create the output directory; relative paths are taken from ``basedir``."""
    path = Path(out)
    if not path.is_absolute():
        path = basedir / path
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise HarnessError(f"cannot create output directory {path}: {exc}") from exc
    return path
