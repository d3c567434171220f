from __future__ import annotations

import logging

from flask import Flask, g, jsonify

from ..container import Container
from ..core.exceptions import StorageUnavailableError
from .identity import login_required
from .model import user_to_dict

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/user", methods=["GET"], endpoint="auth_user")
    @login_required
    def auth_user():
        try:
            user = container.users_repo.get_by_id(g.identity.user_id)
        except StorageUnavailableError as e:
            return jsonify({"message": str(e)}), 503
        except Exception:
            logger.exception("Error fetching user %s", g.identity.user_id)
            return jsonify({"message": "Failed to fetch user"}), 500

        if not user:
            return jsonify({"message": "User not found"}), 404
        return jsonify(user_to_dict(user))
