"""
news_api.py — Latest-entries API
=================================
GET /api/news/<count>  — up to <count> entries, newest pubDate first

Registered on the app by create_app(); the store handle is read from
app.config["FEED_STORE"].
"""

import logging
import re
from typing import List

from flask import Blueprint, Response, current_app, jsonify

from db import MAX_LIMIT, StoreError
from models import Entry

log = logging.getLogger("news_api")

news_bp = Blueprint("news", __name__)

_COUNT_RE = re.compile(r"\+?[0-9]+")


class InvalidCountError(ValueError):
    """Count parameter is not a non-negative integer."""


def parse_count(count_param: str) -> int:
    if not isinstance(count_param, str) or not _COUNT_RE.fullmatch(count_param):
        raise InvalidCountError(count_param)
    count = int(count_param)
    if count > MAX_LIMIT:
        raise InvalidCountError(count_param)
    return count


def get_recent(store, count_param: str) -> List[Entry]:
    """Validate the raw count, then read that many entries from the store."""
    count = parse_count(count_param)
    return store.query_recent(count)


def _plain(message: str, status: int) -> Response:
    return Response(message, status=status, mimetype="text/plain")


@news_bp.route("/api/news/<count>", methods=["GET"])
def recent_news(count):
    store = current_app.config["FEED_STORE"]
    try:
        entries = get_recent(store, count)
    except InvalidCountError:
        return _plain("Invalid count parameter", 400)
    except StoreError as e:
        log.error("Query for %s entries failed: %s", count, e)
        return _plain(str(e), 500)

    return jsonify([entry.to_dict() for entry in entries])
