"""Subprocess sandbox that runs a candidate's ``solve`` function."""
from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
from textwrap import dedent
from typing import Any, Dict, List, Optional

from config.settings import settings
from interview_session.errors import RuntimeFailure

logger = logging.getLogger(__name__)

ENTRYPOINT = "solve"

# Runs inside the child interpreter. Resource limits are applied before any
# candidate code is compiled. The verdict is written on its own line after
# whatever the candidate wrote to the real stdout.
HARNESS = dedent(
    """
    import io
    import json
    import sys

    payload = json.loads(sys.stdin.read())
    limits = payload.get("limits")
    if limits:
        import resource

        resource.setrlimit(resource.RLIMIT_CPU, (limits["cpu_s"], limits["cpu_s"]))
        resource.setrlimit(resource.RLIMIT_AS, (limits["memory_bytes"], limits["memory_bytes"]))

    real_stdout = sys.stdout
    sys.stdout = io.StringIO()


    def finish(verdict):
        sys.stdout = real_stdout
        sys.stdout.write("\\n" + json.dumps(verdict) + "\\n")
        sys.stdout.flush()
        raise SystemExit(0)


    namespace = {"__name__": "__candidate__"}
    try:
        exec(compile(payload["code"], "<candidate>", "exec"), namespace)
    except SyntaxError as exc:
        finish({"error": "SyntaxError: %s (line %s)" % (exc.msg, exc.lineno)})
    except Exception as exc:
        finish({"error": "%s: %s" % (type(exc).__name__, exc)})

    solve = namespace.get(payload["entrypoint"])
    if not callable(solve):
        finish({"error": "No function named '%s' was defined" % payload["entrypoint"]})

    try:
        result = solve(*payload["args"])
    except Exception as exc:
        finish({"error": "%s: %s" % (type(exc).__name__, exc)})

    try:
        json.dumps(result)
    except (TypeError, ValueError) as exc:
        finish({"error": "Return value is not JSON serializable: %s" % exc})
    finish({"result": result})
    """
).strip()


def _resource_limits(timeout_s: float, memory_mb: int) -> Optional[Dict[str, int]]:
    if os.name != "posix":
        return None
    return {"cpu_s": max(1, int(timeout_s) + 1), "memory_bytes": memory_mb * 1024 * 1024}


class SubprocessEvaluator:
    """Evaluate candidate code in an isolated child interpreter."""

    def __init__(
        self,
        *,
        timeout_s: Optional[float] = None,
        memory_mb: Optional[int] = None,
        max_output_bytes: Optional[int] = None,
        python: str = sys.executable,
    ) -> None:
        self._timeout_s = timeout_s if timeout_s is not None else settings.CODE_TIMEOUT_S
        self._memory_mb = memory_mb if memory_mb is not None else settings.CODE_MEMORY_LIMIT_MB
        self._max_output = max_output_bytes if max_output_bytes is not None else settings.CODE_MAX_OUTPUT_BYTES
        self._python = python

    def evaluate(self, code: str, args: List[Any]) -> Any:
        payload = json.dumps(
            {
                "code": code,
                "args": list(args),
                "entrypoint": ENTRYPOINT,
                "limits": _resource_limits(self._timeout_s, self._memory_mb),
            }
        )
        try:
            proc = subprocess.run(
                [self._python, "-I", "-c", HARNESS],
                input=payload,
                capture_output=True,
                text=True,
                timeout=self._timeout_s,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise RuntimeFailure(f"Execution timed out after {self._timeout_s:g} seconds") from exc
        except OSError as exc:
            logger.error("Failed to launch code sandbox: %s", exc)
            raise RuntimeFailure("The code runner could not be started") from exc

        stdout = proc.stdout or ""
        if len(stdout.encode("utf-8")) > self._max_output:
            raise RuntimeFailure("Your solution returned a value that is too large")
        if proc.returncode != 0 or not stdout.strip():
            raise RuntimeFailure(_describe_crash(proc.returncode, proc.stderr))
        try:
            verdict = json.loads(stdout.strip().splitlines()[-1])
        except json.JSONDecodeError as exc:
            raise RuntimeFailure("The code runner produced unreadable output") from exc
        if "error" in verdict:
            raise RuntimeFailure(str(verdict["error"]))
        return verdict.get("result")


def _describe_crash(returncode: int, stderr: str | None) -> str:
    lines = [line for line in (stderr or "").splitlines() if line.strip()]
    if lines:
        return lines[-1].strip()
    if returncode < 0:
        return f"Execution was terminated by signal {-returncode}"
    return f"Execution exited with status {returncode}"


def evaluate(code: str, args: List[Any]) -> Any:
    """Run ``solve(*args)`` from ``code`` with the default sandbox settings."""

    return SubprocessEvaluator().evaluate(code, args)


__all__ = ["ENTRYPOINT", "SubprocessEvaluator", "evaluate"]
