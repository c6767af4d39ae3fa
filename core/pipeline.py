"""Trigger the external analysis pipeline that writes results to Firestore."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import subprocess
from typing import Sequence

from core.symbols import validate_symbols

FORM_TIMEOUT_SECONDS = 120
API_TIMEOUT_SECONDS = 180
PIPELINE_ENTRYPOINT = "main.py"
EXPORT_TARGET = "firebase"

logger = logging.getLogger("signalboard.pipeline")


class PipelineNotConfiguredError(RuntimeError):
    """No pipeline working directory has been configured."""


class PipelineError(RuntimeError):
    """The pipeline process failed, timed out or could not be started."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


@dataclass(frozen=True)
class PipelineResult:
    symbols: list[str]
    with_ai: bool
    output: str = ""
    errors: str = ""

    @property
    def message(self) -> str:
        return f"Analysis complete for {len(self.symbols)} symbols"


@dataclass
class PipelineRunner:
    """Run ``python main.py SYM... [--ai] --export firebase`` in the pipeline directory."""

    pipeline_path: str
    python_executable: str = "python"
    extra_env: dict[str, str] = field(default_factory=lambda: {"PYTHONUNBUFFERED": "1"})

    def build_command(self, symbols: Sequence[str], with_ai: bool) -> list[str]:
        command = [self.python_executable, PIPELINE_ENTRYPOINT, *symbols]
        if with_ai:
            command.append("--ai")
        command.extend(["--export", EXPORT_TARGET])
        return command

    def run(self, symbols: Sequence[str], with_ai: bool = False, timeout: float = API_TIMEOUT_SECONDS) -> PipelineResult:
        """Validate ``symbols`` and block until the pipeline exits.

        Raises ``InvalidSymbolsError`` before anything is spawned when any
        symbol is invalid.
        """
        if not self.pipeline_path:
            raise PipelineNotConfiguredError("Pipeline path not configured")

        valid = validate_symbols(symbols)
        workdir = Path(self.pipeline_path)
        if not workdir.is_dir():
            raise PipelineNotConfiguredError(f"Pipeline path does not exist: {workdir}")

        command = self.build_command(valid, with_ai)
        logger.info("Running pipeline for %s (ai=%s, timeout=%ss)", ",".join(valid), with_ai, timeout)

        try:
            completed = subprocess.run(
                command,
                cwd=str(workdir),
                env={**os.environ, **self.extra_env},
                capture_output=True,
                text=True,
                timeout=timeout,
                check=True,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("Pipeline timed out after %ss for %s", timeout, ",".join(valid))
            raise PipelineError(f"Pipeline timed out after {timeout:g}s", _as_text(exc.stdout)) from exc
        except subprocess.CalledProcessError as exc:
            stderr = _as_text(exc.stderr).strip()
            logger.error("Pipeline exited with status %s: %s", exc.returncode, stderr[-500:])
            reason = stderr.splitlines()[-1] if stderr else f"exit status {exc.returncode}"
            raise PipelineError(f"Pipeline failed: {reason}", _as_text(exc.stdout)) from exc
        except OSError as exc:
            logger.error("Pipeline could not be started: %s", exc)
            raise PipelineError(f"Pipeline could not be started: {exc}") from exc

        logger.info("Pipeline finished for %s", ",".join(valid))
        return PipelineResult(symbols=valid, with_ai=with_ai, output=completed.stdout, errors=completed.stderr)


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
