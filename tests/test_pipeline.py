import subprocess
from unittest import mock

import pytest

from core.pipeline import (
    FORM_TIMEOUT_SECONDS,
    PipelineError,
    PipelineNotConfiguredError,
    PipelineRunner,
)
from core.symbols import InvalidSymbolsError


def _completed(stdout="done\n", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr=stderr)


def test_build_command():
    runner = PipelineRunner("/srv/pipeline")
    assert runner.build_command(["AAPL", "MSFT"], with_ai=True) == [
        "python", "main.py", "AAPL", "MSFT", "--ai", "--export", "firebase",
    ]
    assert runner.build_command(["AAPL"], with_ai=False) == ["python", "main.py", "AAPL", "--export", "firebase"]


def test_run_invokes_pipeline(pipeline_dir):
    runner = PipelineRunner(str(pipeline_dir))
    with mock.patch("core.pipeline.subprocess.run", return_value=_completed()) as run:
        result = runner.run("aapl, msft", with_ai=True, timeout=FORM_TIMEOUT_SECONDS)

    assert result.symbols == ["AAPL", "MSFT"]
    assert result.output == "done\n"
    assert result.message == "Analysis complete for 2 symbols"

    args, kwargs = run.call_args
    assert args[0] == ["python", "main.py", "AAPL", "MSFT", "--ai", "--export", "firebase"]
    assert kwargs["cwd"] == str(pipeline_dir)
    assert kwargs["timeout"] == FORM_TIMEOUT_SECONDS
    assert kwargs["env"]["PYTHONUNBUFFERED"] == "1"
    assert kwargs["check"] is True


def test_invalid_symbols_never_spawn(pipeline_dir):
    runner = PipelineRunner(str(pipeline_dir))
    with mock.patch("core.pipeline.subprocess.run") as run:
        with pytest.raises(InvalidSymbolsError):
            runner.run(["AAPL", "bad-one"])
    run.assert_not_called()


def test_missing_configuration(tmp_path):
    with pytest.raises(PipelineNotConfiguredError):
        PipelineRunner("").run(["AAPL"])
    with pytest.raises(PipelineNotConfiguredError):
        PipelineRunner(str(tmp_path / "absent")).run(["AAPL"])


def test_non_zero_exit(pipeline_dir):
    error = subprocess.CalledProcessError(2, ["python"], output="partial", stderr="Traceback\nKeyError: 'x'\n")
    with mock.patch("core.pipeline.subprocess.run", side_effect=error):
        with pytest.raises(PipelineError) as excinfo:
            PipelineRunner(str(pipeline_dir)).run(["AAPL"])
    assert str(excinfo.value) == "Pipeline failed: KeyError: 'x'"
    assert excinfo.value.output == "partial"


def test_timeout(pipeline_dir):
    error = subprocess.TimeoutExpired(["python"], 5, output=b"half")
    with mock.patch("core.pipeline.subprocess.run", side_effect=error):
        with pytest.raises(PipelineError, match="timed out after 5s") as excinfo:
            PipelineRunner(str(pipeline_dir)).run(["AAPL"], timeout=5)
    assert excinfo.value.output == "half"


def test_missing_interpreter(pipeline_dir):
    with mock.patch("core.pipeline.subprocess.run", side_effect=FileNotFoundError("python")):
        with pytest.raises(PipelineError, match="could not be started"):
            PipelineRunner(str(pipeline_dir)).run(["AAPL"])


def test_cli_arguments():
    from scripts.run_pipeline import build_parser

    args = build_parser().parse_args(["AAPL,MSFT", "--ai", "--pipeline-path", "/srv/pipeline", "--timeout", "60"])
    assert args.symbols == "AAPL,MSFT"
    assert args.ai is True
    assert args.pipeline_path == "/srv/pipeline"
    assert args.timeout == 60.0
