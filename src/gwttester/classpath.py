from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Mapping, Optional
from urllib.parse import unquote, urlparse

from .config import ProjectContext
from .errors import ClasspathError
from .options import RunnerOptions

log = logging.getLogger(__name__)

# Support libraries the child process calls back into, and the environment
# variables that override their location.
SUPPORT_ENTRIES = {
    "runner": "GWTTESTER_RUNNER_PATH",
    "reporter": "GWTTESTER_REPORTER_PATH",
}


def normalize_location(location: str) -> Path:
    """Turn a plain path, ``file:`` URL or ``jar:file:...!/...`` URL into a path."""
    text = location.strip()
    if text.startswith("jar:"):
        text = text[4:]
        if "!" in text:
            text = text[: text.index("!")]
    if text.startswith("file:"):
        parsed = urlparse(text)
        text = unquote(parsed.path)
        if os.name == "nt" and len(text) > 2 and text[0] == "/" and text[2] == ":":
            text = text[1:]
    return Path(text)


def locate_support_entry(
    name: str, project: ProjectContext, environ: Optional[Mapping[str, str]] = None
) -> Path:
    if environ is None:
        environ = os.environ
    location = environ.get(SUPPORT_ENTRIES[name]) or project.support.get(name)
    if not location:
        raise ClasspathError(
            f"no location configured for the {name} support library"
            f" (set support.{name} or {SUPPORT_ENTRIES[name]})"
        )
    path = project.resolve(normalize_location(location))
    if not path.exists():
        raise ClasspathError(f"{name} support library not found: {path}")
    log.debug("support entry %s resolved to %s", name, path)
    return path


def _sdk_jars(project: ProjectContext) -> List[Path]:
    jars: List[Path] = []
    for label, jar in (("gwt-user", project.gwt_user_jar), ("gwt-dev", project.gwt_dev_jar)):
        if jar is None:
            raise ClasspathError(f"{label} jar is not configured")
        if not jar.exists():
            raise ClasspathError(f"{label} jar not found: {jar}")
        jars.append(jar)
    return jars


def deduplicate(entries: Iterable[Path]) -> List[Path]:
    seen = set()
    result: List[Path] = []
    for entry in entries:
        key = os.path.normcase(os.path.normpath(str(entry)))
        if key in seen:
            continue
        seen.add(key)
        result.append(entry)
    return result


def assemble_classpath(
    options: RunnerOptions,
    project: ProjectContext,
    environ: Optional[Mapping[str, str]] = None,
) -> List[Path]:
    sdk = _sdk_jars(project)
    entries: List[Path] = []
    if options.gwt_sdk_first_in_classpath:
        entries.extend(sdk)
    entries.extend(project.test_classpath)
    if not options.gwt_sdk_first_in_classpath:
        entries.extend(sdk)
    entries.extend(project.source_roots)
    entries.extend(project.resource_roots)
    for name in SUPPORT_ENTRIES:
        entries.append(locate_support_entry(name, project, environ))
    classpath = deduplicate(entries)
    for entry in classpath:
        log.debug("classpath entry %s", entry)
    return classpath
