"""
ElectionTrends - REST API Routes

Flask blueprint registered on the Dash server. Every response uses the
envelope {"ok": true, "data": ...} or {"ok": false, "code": ..., "message": ...}.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional, Tuple

from flask import Blueprint, Response, jsonify, request

from election_trends.utils.errors import ElectionTrendsError, InvalidQuery

if TYPE_CHECKING:
    from election_trends.dashboard.data_provider import TrendsDataProvider


logger = logging.getLogger(__name__)


def success(data: Any, status: int = 200) -> Tuple[Response, int]:
    """Build a success envelope."""
    return jsonify({"ok": True, "data": data}), status


def failure(code: str, status: int, message: Optional[str] = None) -> Tuple[Response, int]:
    """Build an error envelope."""
    body = {"ok": False, "code": code}
    if message:
        body["message"] = message
    return jsonify(body), status


def create_api_blueprint(data_provider: "TrendsDataProvider") -> Blueprint:
    """
    Create the REST API blueprint.

    Args:
        data_provider: Provider shared with the dashboard

    Returns:
        Flask Blueprint to register on the Dash Flask server
    """
    api = Blueprint("election_trends_api", __name__)

    @api.errorhandler(InvalidQuery)
    def handle_invalid_query(error: InvalidQuery):
        logger.info(f"Rejected query: {error}")
        return failure(error.code, 400, str(error))

    @api.errorhandler(ElectionTrendsError)
    def handle_server_error(error: ElectionTrendsError):
        logger.error(f"[ERROR] {request.method} {request.path} failed: {error}")
        return failure(error.code, 500)

    # ==================== Datapoints ====================

    @api.route("/datapoint/filters", methods=["GET"])
    def datapoint_filters():
        return success(data_provider.get_filter_options())

    @api.route("/datapoint/search", methods=["POST"])
    def datapoint_search():
        query = request.get_json(silent=True)
        if query is None and request.get_data():
            return failure("INVALID_QUERY", 400, "Request body must be JSON")
        return success(data_provider.search(query or {}))

    @api.route("/datapoint", methods=["POST"])
    def datapoint_insert():
        body = request.get_json(silent=True)
        records = body.get("dataPoints") if isinstance(body, dict) else None
        if not isinstance(records, list):
            return failure("INVALID_BODY", 400, "dataPoints must be a list")

        try:
            inserted = data_provider.insert_datapoints(records)
        except InvalidQuery as error:
            return failure("INVALID_BODY", 400, str(error))

        logger.info(f"[OK] Inserted {inserted} datapoints via API")
        return success({"inserted": inserted}, 201)

    @api.route("/datapoint/all", methods=["DELETE"])
    def datapoint_delete_all():
        return success({"deleted": data_provider.delete_all()})

    # ==================== Elections ====================

    @api.route("/election", methods=["GET"])
    def election_list():
        return success([election.to_dict() for election in data_provider.list_elections()])

    @api.route("/election/<election_id>", methods=["GET"])
    def election_detail(election_id: str):
        election = data_provider.get_election(election_id)
        if election is None:
            return failure("NOT_FOUND", 404, f"Election '{election_id}' not found")
        return success(election.to_dict())

    # ==================== Polls ====================

    @api.route("/poll", methods=["GET"])
    def poll_list():
        return success([poll.to_dict() for poll in data_provider.list_polls()])

    @api.route("/poll/<poll_id>", methods=["GET"])
    def poll_detail(poll_id: str):
        poll = data_provider.get_poll(poll_id)
        if poll is None:
            return failure("NOT_FOUND", 404, f"Poll '{poll_id}' not found")
        return success(poll.to_dict())

    # ==================== Health ====================

    @api.route("/health", methods=["GET"])
    def health():
        return success(data_provider.health())

    return api
