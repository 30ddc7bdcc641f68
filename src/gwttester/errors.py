from __future__ import annotations


class HarnessError(RuntimeError):
    """The orchestration machinery itself is broken; the run must stop."""


class ClasspathError(HarnessError):
    pass


class PatternError(HarnessError):
    pass


class BuildFailure(RuntimeError):
    """One or more test units failed and failures are not ignored."""
