"""
Satellite Globe Service - Flask API
Serves satellite point features, the threshold filter and ground tracks to a 3D globe client
"""

import os
import traceback
from datetime import datetime, timezone
from typing import Optional

import structlog
from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import (
    GlobeServiceConfig,
    SATELLITE_SYMBOL,
    TRACK_ACTION,
    TRACK_SYMBOL,
    VIEW_SETTINGS,
)
from globe_service import __version__
from globe_service.fetch import ElementTextCache
from globe_service.layers import OBJECT_ID_FIELD
from globe_service.session import GlobeSession, SessionState
from logging_config import configure_structlog

configure_structlog()
logger = structlog.get_logger()

config = GlobeServiceConfig()


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_app(session: Optional[GlobeSession] = None, load_on_start: bool = True) -> Flask:
    """
    Create the Flask app around a globe session.

    Args:
        session: Session to serve; a new sgp4-backed session by default
        load_on_start: Load ELEMENT_SOURCE when the session is unloaded
    """
    app = Flask(__name__)
    CORS(app)

    if session is None:
        session = GlobeSession(track_workers=config.TRACK_WORKERS,
                               control_steps=config.CONTROL_STEPS)
    app.config['GLOBE_SESSION'] = session

    if load_on_start and session.state == SessionState.UNLOADED:
        cache = ElementTextCache.from_url(config.REDIS_URL, config.CACHE_TTL)
        session.load(config.ELEMENT_SOURCE, timeout=config.FETCH_TIMEOUT, cache=cache)

    @app.route('/health', methods=['GET'])
    def health_check():
        """Service and session status"""
        return jsonify({
            "status": "healthy",
            "timestamp": _timestamp(),
            "version": __version__,
            "session": {
                "state": session.state.value,
                "satellites_loaded": len(session.feature_layer),
                "element_sets_parsed": len(session.element_sets),
            },
        }), 200

    @app.route('/view', methods=['GET'])
    def get_view():
        """View, symbol and popup settings for the globe client"""
        return jsonify({
            "view": VIEW_SETTINGS,
            "satellite_symbol": SATELLITE_SYMBOL,
            "track_symbol": TRACK_SYMBOL,
            "object_id_field": OBJECT_ID_FIELD,
            "actions": [TRACK_ACTION],
        })

    @app.route('/satellites', methods=['GET'])
    def get_satellites():
        """Visible satellite features as GeoJSON"""
        layer = session.feature_layer
        collection = layer.to_geojson()
        collection["where"] = layer.filter.where if layer.filter else None
        collection["count"] = len(collection["features"])
        collection["total"] = len(layer)
        return jsonify(collection)

    @app.route('/control', methods=['GET'])
    def get_control():
        """Threshold control state"""
        return jsonify(session.control.model_dump())

    @app.route('/control', methods=['PUT'])
    def update_control():
        """Apply a threshold control event"""
        if session.control.disabled:
            return jsonify({"error": "Control is disabled"}), 409

        body = _json_body()
        if 'value' not in body:
            raise ValueError("value is required")
        event_type = body.get('event', 'thumb-change')
        layer_filter = session.filter_controller.handle_event(event_type, body.get('value'))
        return jsonify({
            "control": session.control.model_dump(),
            "where": layer_filter.where if layer_filter else None,
        })

    @app.route('/selection', methods=['PUT'])
    def select_satellite():
        """Select a satellite; clears the displayed track"""
        body = _json_body()
        object_id = body.get('object_id')
        if isinstance(object_id, bool) or not isinstance(object_id, int):
            raise ValueError("object_id must be an integer")
        feature = session.select(object_id)
        return jsonify({"selected": feature.to_geojson(), "actions": [TRACK_ACTION]})

    @app.route('/selection', methods=['DELETE'])
    def deselect_satellite():
        session.deselect()
        return jsonify({"selected": None})

    @app.route('/selection/actions/<action_id>', methods=['POST'])
    def trigger_action(action_id: str):
        """Run a popup action on the selected satellite"""
        if not session.trigger_action(action_id):
            return jsonify({"error": f"Unknown action {action_id}"}), 404
        return jsonify({"track": session.track_layer.to_geojson()})

    @app.route('/track', methods=['GET'])
    def get_track():
        return jsonify({"track": session.track_layer.to_geojson()})

    @app.errorhandler(ValueError)
    def handle_bad_request(error):
        return jsonify({"error": str(error), "timestamp": _timestamp()}), 400

    @app.errorhandler(KeyError)
    def handle_not_found(error):
        return jsonify({"error": str(error.args[0]) if error.args else "Not found",
                        "timestamp": _timestamp()}), 404

    @app.errorhandler(RuntimeError)
    def handle_conflict(error):
        return jsonify({"error": str(error), "timestamp": _timestamp()}), 409

    @app.errorhandler(Exception)
    def handle_error(error):
        """Global error handler"""
        if isinstance(error, HTTPException):
            return error
        logger.error(f"Unhandled error: {error}\n{traceback.format_exc()}")
        return jsonify({
            "error": "Internal server error",
            "timestamp": _timestamp()
        }), 500

    return app


if __name__ == '__main__':
    logger.info("Starting Satellite Globe Service")
    create_app().run(host='0.0.0.0', port=int(os.getenv('PORT', '5000')))
