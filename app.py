"""
app.py — RSS news aggregator entry point
=========================================
Reads config.json, opens the entry store, starts the feed poller in the
background and serves:

    GET /api/news/<count>   latest entries as JSON
    GET /health             liveness + entry count
    GET /, /<path>          static files from RSS_STATIC_DIR

Run:
    python app.py
    RSS_CONFIG=/etc/rss/config.json PORT=9000 rss-news
"""

import logging
import os
import socket
import sys

from flask import Flask, jsonify, send_from_directory
from werkzeug.serving import make_server, select_address_family

from config import ConfigError, Settings, load_config
from db import FeedStore, StoreError
from news_api import news_bp
from observability import init_logging, init_observability
from poller import FeedPoller
from rss_fetcher import FeedFetcher

log = logging.getLogger("app")

VERSION = "1.0.0"


def create_app(store: FeedStore, static_dir: str = "./static") -> Flask:
    static_dir = os.path.abspath(static_dir)
    app = Flask(__name__, static_folder=static_dir, static_url_path="")
    app.config["FEED_STORE"] = store
    app.json.sort_keys = False

    init_observability(app)
    app.register_blueprint(news_bp)

    @app.route("/health")
    def health():
        try:
            entries = store.count()
        except StoreError as e:
            return jsonify({"status": "error", "version": VERSION, "error": str(e)}), 503
        return jsonify({"status": "ok", "version": VERSION, "entries": entries})

    @app.route("/")
    def index():
        return send_from_directory(static_dir, "index.html")

    return app


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind and listen here so a busy port surfaces as OSError."""
    family = select_address_family(host, port)
    return socket.create_server((host, port), family=family, backlog=128)


def _fatal(msg: str, *args) -> None:
    log.critical(msg, *args)
    sys.exit(1)


def main() -> None:
    try:
        settings = Settings.from_env()
    except ValueError as e:
        init_logging()
        _fatal("Invalid environment settings: %s", e)
    init_logging(settings.log_level)

    try:
        config = load_config(settings.config_path)
    except ConfigError as e:
        _fatal("Error reading config file: %s", e)

    store = FeedStore(settings.db_path)
    try:
        store.initialize()
    except StoreError as e:
        _fatal("Error initializing store: %s", e)

    try:
        sock = bind_socket(settings.host, settings.port)
    except OSError as e:
        _fatal("Cannot bind %s:%s: %s", settings.host, settings.port, e)

    app = create_app(store, settings.static_dir)
    server = make_server(settings.host, settings.port, app, threaded=True, fd=sock.fileno())

    fetcher = FeedFetcher(store, timeout=config.fetch_timeout)
    poller = FeedPoller(config.feeds, fetcher, config.period, max_workers=config.max_workers)
    poller.start()

    log.info("Serving on %s:%s", settings.host, server.server_address[1])
    try:
        server.serve_forever()
    finally:
        poller.stop(timeout=0)
        server.server_close()
        sock.close()


if __name__ == "__main__":
    main()
