"""
Exceptions for shout.

Pipeline failures derive from RunError, which records where the pipeline
broke down:

- ShoutError: base for everything raised by this package
  - RunError: a pipeline could not run to completion
    - DanglingPipeError: empty segment around a `|`
    - InvalidEnvAssignmentError: `VAR= value` or `VAR =value`
    - ExecutableNotFoundError: command not found in PATH
    - MissingWrappedCommandError: `sudo`/`xargs` with nothing to run
    - GlobSyntaxError: malformed wildcard pattern
    - StartFailureError: the OS could not spawn a stage
    - WaitFailureError: the OS could not wait on a stage
    - StageStderrError: a stage exited non-zero and wrote to stderr
  - EditError, PackagerError, BootError, RuncomError: collaborators

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from typing import List, Optional, Union


class ShoutError(Exception):
    """Base exception class for shout."""

    pass


class RunError(ShoutError):
    """Raised when a pipeline fails.

    Attributes:
        command: The pipeline text as given by the caller
        phase: Where it failed: "parse", "start", "wait" or "stderr"
        stage_path: Resolved executable of the offending stage, if known
        stage_args: Argument vector of the offending stage, if known
        cause: Underlying exception or diagnostic text
    """

    phase = "parse"
    reason = "pipeline failed"

    def __init__(
        self,
        command: str,
        cause: Union[Exception, str, None] = None,
        stage_path: Optional[str] = None,
        stage_args: Optional[List[str]] = None,
    ):
        self.command = command
        self.cause = cause if cause is not None else self.reason
        self.stage_path = stage_path
        self.stage_args = stage_args
        super().__init__(self._format())

    def _format(self) -> str:
        msg = f"[run] `{self.command}`"
        if self.stage_path is not None:
            msg += f"\n\tDEBUG: Path: {self.stage_path} | Args: {self.stage_args}"
        return msg + f"\n\t{self.phase}: {self.cause}"


class DanglingPipeError(RunError):
    reason = "no command around of pipe"


class InvalidEnvAssignmentError(RunError):
    reason = "the format of the variable has to be VAR=value"


class ExecutableNotFoundError(RunError):
    reason = "executable file not found in PATH"


class MissingWrappedCommandError(RunError):
    """Raised when a wrapper like `sudo` is the last field of a stage."""

    def __init__(self, command: str, wrapper: str):
        self.wrapper = wrapper
        super().__init__(command, f"command not added to {wrapper}")


class GlobSyntaxError(RunError):
    reason = "syntax error in pattern"


class StartFailureError(RunError):
    phase = "start"


class WaitFailureError(RunError):
    phase = "wait"


class StageStderrError(RunError):
    """Raised when a stage exits non-zero with text on its stderr.

    The stripped diagnostic text is kept in ``stderr`` as well as ``cause``.
    """

    phase = "stderr"

    def __init__(self, command: str, stderr: str, stage_path: str, stage_args: List[str],
                 returncode: int):
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(command, stderr, stage_path, stage_args)


class EditError(ShoutError):
    """Raised when a file edit cannot be applied."""

    pass


class PackagerError(ShoutError):
    """Raised when a package manager command does not succeed."""

    pass


class BootError(ShoutError):
    """Raised when boot-time I/O fails."""

    pass


class RuncomError(ShoutError):
    """Raised for malformed key=value configuration files."""

    def __init__(self, path: str, lineno: int, line: str):
        self.path = path
        self.lineno = lineno
        self.line = line
        super().__init__(f"{path}:{lineno}: expected key=value, got {line!r}")
