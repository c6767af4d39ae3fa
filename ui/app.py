"""Read-only Flask dashboard for stored technical-analysis results."""

from __future__ import annotations

import atexit
import hmac
import logging
import os
from pathlib import Path
import tempfile
import time
from typing import Any

MPL_CONFIG_DIR = os.path.join(tempfile.gettempdir(), "matplotlib")
os.environ.setdefault("MPLCONFIGDIR", MPL_CONFIG_DIR)
os.makedirs(MPL_CONFIG_DIR, exist_ok=True)

import matplotlib

matplotlib.use("Agg")

from flask import (
    Flask,
    abort,
    flash,
    got_request_exception,
    jsonify,
    redirect,
    render_template,
    request,
    send_file,
    session,
    url_for,
)
from plotly.offline import get_plotlyjs

from config import settings
from core.chart_selector import parse_variant, select_chart_variant
from core.pipeline import (
    API_TIMEOUT_SECONDS,
    FORM_TIMEOUT_SECONDS,
    PipelineError,
    PipelineNotConfiguredError,
    PipelineRunner,
)
from core.models import SignalCategory
from core.repository import RecordError
from core.service import AnalysisService
from core.symbols import InvalidSymbolsError, sanitize_symbol
from ui.api import parse_bool, serialize_view
from ui.cache import PageCache
from ui.charts import (
    build_fibonacci_chart,
    build_macd_chart,
    build_moving_average_chart,
    build_oscillator_chart,
    cache_busted_static_url,
    ensure_static_charts,
    render_signal_chart,
)
from ui.models import AnalysisViewModel, build_analysis_view
from ui.utils.pdf_exporter import PDF_DIR, build_analysis_pdf


BASE_PATH = Path(settings.BASE_DIR)
UI_DIR = BASE_PATH / "ui"
STATIC_DIR = UI_DIR / "static"
CHARTS_DIR = STATIC_DIR / "charts"

PLOTLY_VENDOR_RELATIVE_PATH = "vendor/plotly.min.js"
PLOTLY_VENDOR_PATH = STATIC_DIR / PLOTLY_VENDOR_RELATIVE_PATH

DASHBOARD_BULLISH_LIMIT = 5
DASHBOARD_PATH = "/"


def _configure_ui_logger() -> logging.Logger:
    """Configure file logger for the UI app and its module loggers."""
    logs_dir = BASE_PATH / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / "ui.log"

    logger = logging.getLogger("signalboard")
    logger.setLevel(logging.INFO)
    logger.propagate = False

    existing = None
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            existing = handler
            break

    if existing is None:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(handler)

    return logging.getLogger("signalboard.ui")


def analysis_path(symbol: str) -> str:
    return f"/analysis/{symbol}"


def _default_service() -> AnalysisService:
    from core.db import create_firestore_client

    return AnalysisService.from_client(create_firestore_client())


def create_app(
    service: AnalysisService | None = None,
    runner: PipelineRunner | None = None,
    page_cache: PageCache | None = None,
    revalidation_secret: str | None = None,
    test_config: dict[str, Any] | None = None,
) -> Flask:
    """Create and configure the Flask application.

    ``service`` defaults to a Firestore-backed service built from the
    environment; tests pass one wired to an in-memory client.
    """
    app = Flask(
        __name__,
        template_folder=str(UI_DIR / "templates"),
        static_folder=str(STATIC_DIR),
    )
    app.config["SECRET_KEY"] = settings.SECRET_KEY
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 86400
    app.config["WRITE_PLOTLY_BUNDLE"] = True
    if test_config:
        app.config.update(test_config)

    CHARTS_DIR.mkdir(parents=True, exist_ok=True)
    PDF_DIR.mkdir(parents=True, exist_ok=True)
    PLOTLY_VENDOR_PATH.parent.mkdir(parents=True, exist_ok=True)
    logger = _configure_ui_logger()

    if app.config["WRITE_PLOTLY_BUNDLE"] and not PLOTLY_VENDOR_PATH.exists():
        try:
            PLOTLY_VENDOR_PATH.write_text(get_plotlyjs(), encoding="utf-8")
            logger.info("Wrote local Plotly bundle: %s", PLOTLY_VENDOR_PATH)
        except OSError as exc:
            logger.warning("Failed to write local Plotly bundle: %s", exc)

    if service is None:
        service = _default_service()
        atexit.register(service.close)
    runner = runner or PipelineRunner(settings.PYTHON_PIPELINE_PATH)
    cache = page_cache if page_cache is not None else PageCache(settings.PAGE_REVALIDATE_SECONDS)
    secret = settings.REVALIDATION_SECRET if revalidation_secret is None else revalidation_secret

    logger.info("UI app initialized (page cache %ss)", cache.ttl_seconds)

    def _static_url(relative_path: str | None) -> str | None:
        return cache_busted_static_url(STATIC_DIR, relative_path, url_for)

    def _plotly_script_url() -> str:
        return _static_url(PLOTLY_VENDOR_RELATIVE_PATH) or url_for("static", filename=PLOTLY_VENDOR_RELATIVE_PATH)

    def _load_view(symbol: str) -> AnalysisViewModel | None:
        full = service.get_full_analysis(symbol)
        if full is None:
            return None
        return build_analysis_view(full)

    def _render_charts(view: AnalysisViewModel, override: Any = None) -> dict[str, str | None]:
        charts: dict[str, str | None] = {}
        for idx, panel in enumerate(view.panels):
            variant = panel.variant
            if idx == 0 and override is not None:
                variant = select_chart_variant(view.signals, override)
            charts[f"panel_{idx}"] = render_signal_chart(view.signals, variant)

        charts["rsi"] = build_oscillator_chart(view.rsi, "RSI", SignalCategory.RSI)
        charts["stochastic"] = build_oscillator_chart(view.stochastic, "Stochastic", SignalCategory.STOCHASTIC)
        if view.positioning is not None:
            charts["moving_averages"] = build_moving_average_chart(view.positioning)
        if view.crossover is not None:
            charts["macd"] = build_macd_chart(view.crossover)
        if view.show_fibonacci:
            charts["fibonacci"] = build_fibonacci_chart(view.fibonacci)
        return charts

    def _not_found(symbol: str):
        return render_template("not_found.html", symbol=symbol), 404

    def _invalidate_after_run(symbols: list[str]) -> None:
        for symbol in symbols:
            cache.invalidate(analysis_path(symbol))
        cache.invalidate(DASHBOARD_PATH)

    @app.route("/")
    def index() -> str:
        """Dashboard with recent analyses and the top bullish signals."""

        def render() -> str:
            data = service.get_dashboard_data()
            return render_template(
                "index.html",
                analyses=data.analyses,
                bullish_signals=data.bullish_signals[:DASHBOARD_BULLISH_LIMIT],
                pipeline_configured=bool(runner.pipeline_path),
            )

        # Pages carrying flashed messages are per-visitor and never cached.
        if session.get("_flashes"):
            return render()
        return cache.get_or_render(DASHBOARD_PATH, render)

    @app.route("/search")
    def search():
        raw = request.args.get("symbol", "")
        cleaned = sanitize_symbol(raw)
        if cleaned is None:
            flash(f"Invalid symbol: {raw.strip() or '(empty)'}", "error")
            return redirect(url_for("index"))
        return redirect(url_for("analysis_detail", symbol=cleaned))

    @app.route("/analysis/<symbol>")
    def analysis_detail(symbol: str):
        cleaned = sanitize_symbol(symbol)
        if cleaned is None:
            return _not_found(symbol)

        try:
            override = parse_variant(request.args.get("chart"))
        except ValueError:
            logger.info("Ignoring unknown chart override %r for %s", request.args.get("chart"), cleaned)
            override = None

        def render() -> str | None:
            view = _load_view(cleaned)
            if view is None:
                return None
            return render_template(
                "analysis.html",
                view=view,
                charts=_render_charts(view, override),
                chart_override=override,
                plotly_script_url=_plotly_script_url(),
            )

        path = analysis_path(cleaned)
        if override is not None or session.get("_flashes"):
            body = render()
        else:
            body = cache.get(path)
            if body is None:
                body = render()
                if body is not None:
                    cache.put(path, body)

        if body is None:
            return _not_found(cleaned)
        return body

    @app.route("/analysis/<symbol>/refresh", methods=["POST"])
    def refresh_analysis(symbol: str):
        cleaned = sanitize_symbol(symbol)
        if cleaned is None:
            return _not_found(symbol)
        cache.invalidate(analysis_path(cleaned))
        cache.invalidate(DASHBOARD_PATH)
        return redirect(url_for("analysis_detail", symbol=cleaned))

    @app.route("/api/analysis/<symbol>")
    def analysis_api(symbol: str):
        cleaned = sanitize_symbol(symbol)
        if cleaned is None:
            return jsonify({"error": f"Invalid symbol: {symbol}"}), 404
        view = _load_view(cleaned)
        if view is None:
            return jsonify({"error": f"No analysis found for {cleaned}"}), 404
        return jsonify(serialize_view(view))

    @app.route("/analyze", methods=["POST"])
    def analyze():
        """Form action: run the pipeline and report back via a flash message."""
        raw_symbols = request.form.get("symbols", "")
        with_ai = parse_bool(request.form.get("withAI"))

        try:
            result = runner.run(raw_symbols, with_ai=with_ai, timeout=FORM_TIMEOUT_SECONDS)
        except (InvalidSymbolsError, PipelineNotConfiguredError, PipelineError) as exc:
            flash(str(exc), "error")
            return redirect(url_for("index"))

        _invalidate_after_run(result.symbols)
        flash(result.message, "success")
        if len(result.symbols) == 1:
            return redirect(url_for("analysis_detail", symbol=result.symbols[0]))
        return redirect(url_for("index"))

    @app.route("/api/pipeline", methods=["POST"])
    def pipeline_api():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict) or not isinstance(payload.get("symbols"), list):
            return jsonify({"success": False, "error": "symbols array required"}), 400

        try:
            result = runner.run(
                payload["symbols"],
                with_ai=parse_bool(payload.get("withAI")),
                timeout=API_TIMEOUT_SECONDS,
            )
        except InvalidSymbolsError as exc:
            return jsonify({"success": False, "error": str(exc), "rejected": exc.rejected}), 400
        except (PipelineNotConfiguredError, PipelineError) as exc:
            return jsonify({"success": False, "error": str(exc)}), 500

        _invalidate_after_run(result.symbols)
        return jsonify({"success": True, "symbols": result.symbols, "output": result.output})

    @app.route("/api/revalidate", methods=["POST"])
    def revalidate_api():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Invalid request body"}), 400

        provided = payload.get("secret")
        if not secret or not isinstance(provided, str) or not hmac.compare_digest(provided, secret):
            logger.warning("Rejected revalidation request for path %r", payload.get("path"))
            return jsonify({"error": "Invalid secret"}), 401

        path = payload.get("path")
        tag = payload.get("tag")
        if path is not None and not isinstance(path, str):
            return jsonify({"error": "Invalid request body"}), 400

        if tag:
            cache.clear()
        if path:
            cache.invalidate(path)
        logger.info("Revalidated path=%r tag=%r", path, tag)
        return jsonify({"revalidated": True, "now": int(time.time() * 1000)})

    @app.route("/export/pdf/<symbol>")
    def export_pdf(symbol: str):
        """Export the latest analysis for one symbol as a PDF report."""
        cleaned = sanitize_symbol(symbol)
        view = _load_view(cleaned) if cleaned else None
        if view is None:
            logger.warning("PDF export requested unavailable symbol %s", symbol)
            abort(404)

        confidence_path, fibonacci_path = ensure_static_charts(
            view.symbol,
            view.analysis.id,
            view.signals,
            view.fibonacci,
            CHARTS_DIR,
        )
        pdf_path = build_analysis_pdf(
            view,
            confidence_chart_path=STATIC_DIR / confidence_path,
            fibonacci_chart_path=STATIC_DIR / fibonacci_path,
            output_dir=PDF_DIR,
        )

        return send_file(
            pdf_path,
            as_attachment=True,
            download_name=pdf_path.name,
            mimetype="application/pdf",
        )

    @app.errorhandler(RecordError)
    def record_error(exc: RecordError):
        logger.error("Stored record could not be read: %s", exc)
        if request.path.startswith("/api/"):
            return jsonify({"error": str(exc)}), 500
        return render_template("error.html", message=str(exc)), 500

    @app.errorhandler(404)
    def page_not_found(_: Exception):
        if request.path.startswith("/api/"):
            return jsonify({"error": "Not found"}), 404
        return render_template("not_found.html", symbol=None), 404

    def _log_unhandled_exception(sender: Flask, exception: Exception, **_: Any) -> None:
        logger.exception("Unhandled UI exception: %s", exception)

    got_request_exception.connect(_log_unhandled_exception, app)

    return app
