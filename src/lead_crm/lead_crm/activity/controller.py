from __future__ import annotations

import logging

from flask import Flask, g, jsonify, request

from ..container import Container
from ..core.exceptions import StorageUnavailableError, ValidationError
from ..users.identity import login_required
from .model import entry_to_dict

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activity-logs", methods=["GET"], endpoint="activity_logs")
    @login_required
    def activity_logs():
        identity = g.identity
        try:
            limit_s = request.args.get("limit")
            try:
                limit = int(limit_s) if limit_s else None
            except ValueError:
                raise ValidationError("limit must be an integer")

            if identity.is_admin:
                entries = container.activity_service.get_activity_logs(limit)
            else:
                entries = container.activity_service.get_user_activity_logs(identity.user_id, limit)
        except ValidationError as e:
            return jsonify({"message": str(e)}), 400
        except StorageUnavailableError as e:
            return jsonify({"message": str(e)}), 503
        except Exception:
            logger.exception("Error fetching activity logs")
            return jsonify({"message": "Failed to fetch activity logs"}), 500
        return jsonify([entry_to_dict(entry) for entry in entries])
