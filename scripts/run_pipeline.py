import argparse
import datetime
import logging
import os
import sys

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from config import settings
from core.pipeline import API_TIMEOUT_SECONDS, PipelineError, PipelineNotConfiguredError, PipelineRunner
from core.symbols import InvalidSymbolsError


def _configure_logging():
    """Configure file logging for local and cron execution."""
    logs_dir = os.path.join(BASE_DIR, "logs")
    os.makedirs(logs_dir, exist_ok=True)

    log_file = os.path.join(logs_dir, "pipeline.log")
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.handlers.clear()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the analysis pipeline and export results to Firestore")
    parser.add_argument("symbols", help="Comma-separated tickers, e.g. AAPL,MSFT (max 10)")
    parser.add_argument("--ai", action="store_true", help="Include AI insights in the run")
    parser.add_argument(
        "--pipeline-path",
        default=settings.PYTHON_PIPELINE_PATH,
        help="Pipeline working directory (default: PYTHON_PIPELINE_PATH)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=API_TIMEOUT_SECONDS,
        help=f"Seconds before the run is abandoned (default: {API_TIMEOUT_SECONDS})",
    )
    parser.add_argument("--python", default="python", help="Interpreter used to launch the pipeline")
    return parser


def main(argv: list[str] | None = None) -> int:
    _configure_logging()
    logger = logging.getLogger("signalboard.runner")
    args = build_parser().parse_args(argv)

    runner = PipelineRunner(args.pipeline_path, python_executable=args.python)
    start_time = datetime.datetime.now(datetime.timezone.utc)
    logger.info("Run started at %s", start_time.isoformat())

    exit_code = 0
    try:
        result = runner.run(args.symbols, with_ai=args.ai, timeout=args.timeout)
        print(result.message)
        if result.output:
            print(result.output.rstrip())
    except InvalidSymbolsError as error:
        exit_code = 2
        print(f"Error: {error}", file=sys.stderr)
    except (PipelineNotConfiguredError, PipelineError) as error:
        exit_code = 1
        print(f"Error: {error}", file=sys.stderr)
    except KeyboardInterrupt:
        exit_code = 130
        logger.warning("Run interrupted by user")

    end_time = datetime.datetime.now(datetime.timezone.utc)
    logger.info("Run ended at %s (exit=%s)", end_time.isoformat(), exit_code)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
