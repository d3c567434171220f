from __future__ import annotations

import logging

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..core.exceptions import PreconditionFailedError, StorageUnavailableError, ValidationError
from ..users.identity import login_required
from .model import entry_to_dict, record_to_dict

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _location_from_body():
        body = request.get_json(silent=True)
        if body is None:
            return None
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return body.get("location")

    def _optional_date(name: str):
        value = request.args.get(name)
        return parse_iso_date(value) if value else None

    @app.route("/api/attendance/punch-in", methods=["POST"], endpoint="punch_in")
    @login_required
    def punch_in():
        user_id = g.identity.user_id
        try:
            record = container.attendance_service.punch_in(user_id, _location_from_body())
            return jsonify(record_to_dict(record))
        except ValidationError as e:
            return jsonify({"message": str(e)}), 400
        except StorageUnavailableError as e:
            logger.warning("Punch-in for %s failed: %s", user_id, e)
            return jsonify({"message": str(e)}), 503
        except Exception:
            logger.exception("Error punching in %s", user_id)
            return jsonify({"message": "Failed to punch in"}), 500

    @app.route("/api/attendance/punch-out", methods=["POST"], endpoint="punch_out")
    @login_required
    def punch_out():
        user_id = g.identity.user_id
        try:
            record = container.attendance_service.punch_out(user_id, _location_from_body())
            return jsonify(record_to_dict(record))
        except PreconditionFailedError as e:
            return jsonify({"message": str(e), "code": e.precondition}), 400
        except ValidationError as e:
            return jsonify({"message": str(e)}), 400
        except StorageUnavailableError as e:
            logger.warning("Punch-out for %s failed: %s", user_id, e)
            return jsonify({"message": str(e)}), 503
        except Exception:
            logger.exception("Error punching out %s", user_id)
            return jsonify({"message": "Failed to punch out"}), 500

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def attendance_today():
        try:
            record = container.attendance_service.get_today(g.identity.user_id)
        except StorageUnavailableError as e:
            return jsonify({"message": str(e)}), 503
        except Exception:
            logger.exception("Error fetching today's attendance")
            return jsonify({"message": "Failed to fetch attendance"}), 500
        return jsonify(record_to_dict(record) if record else None)

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_records")
    @login_required
    def attendance_records():
        """Admins see everyone (optionally one user); everybody else only themselves."""
        identity = g.identity
        if identity.is_admin:
            user_filter = request.args.get("userId") or None
        else:
            user_filter = identity.user_id

        try:
            records = container.attendance_service.list_records(
                user_id=user_filter,
                start_date=_optional_date("startDate"),
                end_date=_optional_date("endDate"),
            )
        except ValidationError as e:
            return jsonify({"message": str(e)}), 400
        except StorageUnavailableError as e:
            return jsonify({"message": str(e)}), 503
        except Exception:
            logger.exception("Error fetching attendance records")
            return jsonify({"message": "Failed to fetch attendance records"}), 500
        return jsonify([entry_to_dict(e) for e in records])
