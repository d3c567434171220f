from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..core.exceptions import StorageUnavailableError, ValidationError
from ..users.identity import login_required

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/stats/attendance", methods=["GET"], endpoint="attendance_stats")
    @login_required
    def attendance_stats():
        start_s = request.args.get("startDate")
        end_s = request.args.get("endDate")
        breakdown = (request.args.get("breakdown") or "").lower()

        try:
            start = parse_iso_date(start_s) if start_s else None
            end = parse_iso_date(end_s) if end_s else None

            if breakdown == "daily":
                if not start or not end:
                    raise ValidationError("startDate and endDate are required for a daily breakdown")
                days = container.stats_service.get_daily_stats(start, end)
                return jsonify([d.to_dict() for d in days])

            stats = container.stats_service.get_attendance_stats(start, end)
            return jsonify(stats.to_dict())
        except ValidationError as e:
            return jsonify({"message": str(e)}), 400
        except StorageUnavailableError as e:
            return jsonify({"message": str(e)}), 503
        except Exception:
            logger.exception("Error fetching attendance stats")
            return jsonify({"message": "Failed to fetch attendance stats"}), 500
