"""
Pipeline executor.

Runs external commands with the shell features a script usually needs
(pipes, inline environment variables, "~" expansion, filename wildcards and
quoting) without handing the command line to a shell, so untrusted input
cannot inject commands.

A call runs in two phases: every stage is parsed and resolved first
(parse_pipeline), then all stages are started in order and waited on in
order. Only the last stage's stdout is captured.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import glob
import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from typing import IO, Any, Dict, List, Optional, Tuple

from shout.env import RunConfig
from shout.errors import (
    DanglingPipeError,
    ExecutableNotFoundError,
    GlobSyntaxError,
    InvalidEnvAssignmentError,
    MissingWrappedCommandError,
    StageStderrError,
    StartFailureError,
    WaitFailureError,
)

logger = logging.getLogger(__name__)

PIPE = "|"

# Commands whose next field is the command that really runs
WRAPPER_COMMANDS = frozenset({"sudo", "xargs"})

QUOTES = ("'", '"')


@dataclass
class Stage:
    """One command of a pipeline, ready to be spawned."""

    argv: List[str]
    path: str
    env: Dict[str, str]
    args_start: int = 1

    @property
    def name(self) -> str:
        return self.argv[0]


@dataclass
class PipelineResult:
    """Outcome of a pipeline run.

    ``ok`` follows pipe semantics: it is the success of the last stage.
    """

    command: str
    output: bytes = b""
    ok: bool = False
    returncodes: List[int] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Output decoded as text, without trailing newlines."""
        return self.output.decode(errors="replace").rstrip("\n")


def split_segments(command: str) -> List[List[str]]:
    """
    Split a pipeline into the whitespace-separated fields of each stage.

    Raises:
        DanglingPipeError: If any segment is empty
    """
    segments = command.split(PIPE)
    for segment in segments:
        if not segment.strip():
            raise DanglingPipeError(command)
    return [segment.split() for segment in segments]


def extract_assignments(
    command: str, fields: List[str], environ: Dict[str, str]
) -> Tuple[List[str], Dict[str, str]]:
    """
    Pull leading VAR=value fields into the stage environment.

    Args:
        command: Full pipeline text, for error reporting
        fields: Fields of one stage
        environ: Base environment (copied, never modified)

    Returns:
        (remaining fields, stage environment)

    Raises:
        InvalidEnvAssignmentError: For "VAR= value" or "VAR =value"
    """
    env = dict(environ)
    idx = 0
    while idx < len(fields):
        token = fields[idx]
        if (
            token.startswith("=")
            or token.endswith("=")
            or (idx + 1 < len(fields) and fields[idx + 1].startswith("="))
        ):
            raise InvalidEnvAssignmentError(command)
        if "=" not in token:
            break
        name, value = token.split("=", 1)
        env[name] = value
        idx += 1
    return fields[idx:], env


def lookup_executable(command: str, name: str, search_path: str) -> str:
    """Resolve a command name to an executable path."""
    found = shutil.which(name, path=search_path)
    if found is None:
        raise ExecutableNotFoundError(
            command, f"exec: {name!r}: executable file not found in $PATH"
        )
    return found


def resolve_wrappers(command: str, fields: List[str], search_path: str) -> int:
    """
    Resolve the commands run through wrappers such as sudo and xargs.

    The field after each wrapper is replaced in place by its resolved path.
    Chains ("sudo xargs rm") are followed one wrapper at a time.

    Returns:
        Index of the first real argument of the stage
    """
    args_start = 1
    for idx in range(len(fields)):
        wrapper = os.path.basename(fields[idx])
        if wrapper not in WRAPPER_COMMANDS:
            break
        if idx + 1 == len(fields):
            raise MissingWrappedCommandError(command, wrapper)

        inner = lookup_executable(command, fields[idx + 1], search_path)
        if inner != fields[idx + 1]:
            fields[idx + 1] = inner
        # Recorded even when the wrapped name was already a full path
        args_start = idx + 2
    return args_start


def check_glob_syntax(command: str, pattern: str) -> None:
    """Raise GlobSyntaxError if a character class is never closed."""
    idx = 0
    while idx < len(pattern):
        if pattern[idx] == "[":
            end = idx + 1
            if end < len(pattern) and pattern[end] in "!^":
                end += 1
            # A "]" right after the opening bracket is a literal member
            if end < len(pattern) and pattern[end] == "]":
                end += 1
            end = pattern.find("]", end)
            if end < 0:
                raise GlobSyntaxError(command, f"syntax error in pattern {pattern!r}")
            idx = end
        idx += 1


def expand_arguments(command: str, fields: List[str], args_start: int, home: str) -> None:
    """
    Expand "~" and wildcards in the arguments of a stage, in place.

    Flags (fields starting with "-") are left alone. Patterns without
    matches stay as literal fields.
    """
    expansions: Dict[int, List[str]] = {}

    for idx in range(args_start, len(fields)):
        token = fields[idx]
        if token.startswith("-"):
            continue

        if token == "~" or token.startswith("~/"):
            token = fields[idx] = home + token[1:]

        check_glob_syntax(command, token)
        # Dot files match like any other name
        names = sorted(glob.glob(token, include_hidden=True))
        if names:
            expansions[idx] = names

    # Splice from the end so earlier indexes stay valid
    for idx in sorted(expansions, reverse=True):
        fields[idx:idx + 1] = expansions[idx]


def join_quoted(tokens: List[str]) -> List[str]:
    """
    Rebuild quoted arguments that whitespace splitting broke apart.

    "'echo" "123'" becomes "echo 123". A quote left open at the end is
    tolerated: its tokens are kept as they were.
    """
    joined: List[str] = []
    quote = None
    buffer: List[str] = []
    raw: List[str] = []

    for token in tokens:
        if quote is None:
            if token[:1] in QUOTES:
                if len(token) > 1 and token.endswith(token[0]):
                    joined.append(token[1:-1])
                else:
                    quote = token[0]
                    buffer = [token[1:]]
                    raw = [token]
                continue
            joined.append(token)
            continue

        raw.append(token)
        if token.endswith(quote):
            buffer.append(token[:-1])
            joined.append(" ".join(buffer))
            quote = None
        else:
            buffer.append(token)

    if quote is not None:
        logger.warning(f"Unterminated {quote} quote in arguments: {' '.join(raw)}")
        joined.extend(raw)
    return joined


def parse_stage(command: str, fields: List[str], config: RunConfig) -> Stage:
    """Turn the fields of one segment into a Stage."""
    fields, env = extract_assignments(command, fields, config.stage_environ())
    if not fields:
        raise ExecutableNotFoundError(command, "no command after environment variables")

    path = lookup_executable(command, fields[0], config.path)
    args_start = resolve_wrappers(command, fields, config.path)
    expand_arguments(command, fields, args_start, config.home)
    argv = fields[:args_start] + join_quoted(fields[args_start:])

    return Stage(argv=argv, path=path, env=env, args_start=args_start)


def parse_pipeline(command: str, config: Optional[RunConfig] = None) -> List[Stage]:
    """
    Parse a pipeline into stages without starting any process.

    Args:
        command: Pipeline text, e.g. "grep foo file.txt | wc -l"
        config: Execution environment (default: snapshot of this process)

    Returns:
        One Stage per "|"-separated segment, in order
    """
    if config is None:
        config = RunConfig.from_environ()
    return [parse_stage(command, fields, config) for fields in split_segments(command)]


class _Handle:
    """A started stage with its buffered stderr."""

    def __init__(self, stage: Stage, proc: subprocess.Popen, stderr: IO[bytes]):
        self.stage = stage
        self.proc = proc
        self.stderr = stderr

    def read_stderr(self) -> str:
        self.stderr.seek(0)
        return self.stderr.read().decode(errors="replace").rstrip("\n")

    def close(self) -> None:
        if self.proc.stdout is not None:
            self.proc.stdout.close()
        self.stderr.close()


def _start(command: str, stages: List[Stage], stdin: Any, output: IO[bytes]) -> List[_Handle]:
    handles: List[_Handle] = []
    upstream = stdin
    last = len(stages) - 1

    for i, stage in enumerate(stages):
        stderr = tempfile.TemporaryFile()
        try:
            proc = subprocess.Popen(
                stage.argv,
                executable=stage.path,
                env=stage.env,
                stdin=upstream,
                stdout=output if i == last else subprocess.PIPE,
                stderr=stderr,
            )
        except (OSError, ValueError) as e:
            stderr.close()
            for handle in handles:
                handle.close()
            raise StartFailureError(command, e, stage.path, stage.argv) from e

        # The child holds its own copy; closing ours lets SIGPIPE reach the producer
        if i > 0:
            upstream.close()
        logger.debug(f"Started stage {i} (pid {proc.pid}): {stage.path} {stage.argv[1:]}")

        handles.append(_Handle(stage, proc, stderr))
        upstream = proc.stdout
    return handles


def _wait(command: str, handles: List[_Handle]) -> Tuple[bool, List[int]]:
    ok = False
    returncodes: List[int] = []

    for handle in handles:
        stage = handle.stage
        try:
            returncode = handle.proc.wait()
        except OSError as e:
            raise WaitFailureError(command, e, stage.path, stage.argv) from e

        returncodes.append(returncode)
        ok = returncode == 0
        if ok:
            continue

        stderr = handle.read_stderr()
        if stderr:
            raise StageStderrError(command, stderr, stage.path, stage.argv, returncode)
        logger.debug(f"Stage {stage.name} exited {returncode} without diagnostics")

    return ok, returncodes


def run(command: str, config: Optional[RunConfig] = None, stdin: Any = None) -> PipelineResult:
    """
    Execute a pipeline of external commands.

    Args:
        command: Pipeline text, e.g. "LANG=C ls ~/src/*.py | wc -l"
        config: Execution environment (default: snapshot of this process)
        stdin: Input of the first stage: a file object, a descriptor,
            subprocess.DEVNULL or None to inherit this process's stdin

    Returns:
        PipelineResult; ``ok`` is False when the last stage exits non-zero
        without writing to stderr (e.g. grep finding nothing)

    Raises:
        RunError: Any parse, start, wait or stderr failure
    """
    stages = parse_pipeline(command, config)
    logger.debug(f"Running `{command}` as {len(stages)} stage(s)")

    with tempfile.TemporaryFile() as output:
        handles = _start(command, stages, stdin, output)
        try:
            ok, returncodes = _wait(command, handles)
        finally:
            for handle in handles:
                # Reap stages left behind by an early error
                if handle.proc.returncode is None:
                    try:
                        handle.proc.wait()
                    except OSError as e:
                        logger.debug(f"Could not reap {handle.stage.name} "
                                     f"(pid {handle.proc.pid}): {e}")
                handle.close()

        output.seek(0)
        return PipelineResult(command=command, output=output.read(), ok=ok,
                              returncodes=returncodes)


def runf(template: str, *args: Any, config: Optional[RunConfig] = None,
         stdin: Any = None, **kwargs: Any) -> PipelineResult:
    """Like run, but builds the command with str.format(*args, **kwargs)."""
    return run(template.format(*args, **kwargs), config=config, stdin=stdin)


def prime_sudo(config: Optional[RunConfig] = None) -> PipelineResult:
    """
    Ask for the sudo password up front.

    Call it at the start of a script that will need sudo later so the
    credentials are cached before the first real command.
    """
    return run("sudo /bin/true", config=config)
