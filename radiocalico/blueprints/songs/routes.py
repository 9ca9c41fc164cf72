from flask import current_app, jsonify, request

from ...services.errors import ValidationError
from . import songs_bp


def _aggregator():
    return current_app.extensions["rating_aggregator"]


@songs_bp.route("/rate", methods=["POST"], endpoint="rate")
def rate_song():
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    meta = {"artist": data.get("artist"), "title": data.get("title")}

    # ValidationError / PersistenceUnavailable are rendered by the errors blueprint
    aggregate = _aggregator().rate(
        data.get("songId"), meta, data.get("userIdentifier"), data.get("rating"),
    )
    return jsonify(success=True, ratings=aggregate.to_dict())


@songs_bp.route("/<song_id>/ratings", methods=["GET"], endpoint="ratings")
def song_ratings(song_id):
    user_id = request.args.get("userIdentifier")
    snapshot = _aggregator().get_ratings(song_id, user_id)
    return jsonify(success=True, **snapshot.to_dict())
