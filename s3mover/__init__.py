"""Flask application factory for the s3mover stats endpoint."""

from flask import Flask

from s3mover.services.metrics import Metrics


def create_app(metrics: Metrics) -> Flask:
    """Create the Flask application that exposes the transporter's metrics."""
    app = Flask(__name__)

    # The engine owns the counters; the app only reads them
    app.config["METRICS"] = metrics

    from s3mover.routes.stats import stats_bp

    app.register_blueprint(stats_bp, url_prefix="/stats")

    return app
