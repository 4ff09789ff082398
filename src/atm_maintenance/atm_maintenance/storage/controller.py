from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import admin_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    database = container.database

    @app.route("/api/database/status", methods=["GET"], endpoint="database_status")
    @admin_required
    def database_status():
        config = database.current_config()
        return jsonify(
            {
                "connected": database.is_remote_connected(),
                "project_id": config.project_id if config else None,
            }
        )

    @app.route("/api/database/config", methods=["POST"], endpoint="database_config_save")
    @admin_required
    def database_config_save():
        raw = request.get_json(silent=True)
        if raw is None:
            raw = request.get_data(as_text=True)
        config = database.save_config(raw)
        return jsonify({"connected": database.is_remote_connected(), "project_id": config.project_id})

    @app.route("/api/database/config", methods=["DELETE"], endpoint="database_config_clear")
    @admin_required
    def database_config_clear():
        database.clear_config()
        return jsonify({"connected": database.is_remote_connected()})

    @app.route("/api/database/test", methods=["POST"], endpoint="database_test")
    @admin_required
    def database_test():
        database.test_connection()
        return jsonify({"ok": True})

    @app.route("/api/database/sync", methods=["POST"], endpoint="database_sync")
    @admin_required
    def database_sync():
        result = database.sync_local_to_remote()
        return jsonify({"reports": result.reports, "users": result.users})
