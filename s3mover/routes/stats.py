"""Stats API routes for s3mover"""

from flask import Blueprint, Response, current_app, jsonify

stats_bp = Blueprint("stats", __name__)


@stats_bp.route("/metrics", methods=["GET"])
def get_metrics() -> tuple[Response, int]:
    """Return the transporter's object counters.

    Returns:
        JSON like {"objects": {"uploaded": 1, "errored": 0, "queued": 0}}
    """
    metrics = current_app.config["METRICS"]
    return jsonify(metrics.snapshot()), 200
