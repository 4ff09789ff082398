from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.http import admin_required, current_role, error_response, login_required
from ..core.enums import UserRole
from ..core.exceptions import ValidationError
from ..container import Container


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


def _role(value, default: UserRole = UserRole.BANK) -> UserRole:
    if not value:
        return default
    try:
        return UserRole(value)
    except ValueError as e:
        raise ValidationError("الدور غير صالح") from e


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = _payload()
        s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["username"] = s_user.username
        session["role"] = s_user.role.value

        return jsonify({"id": s_user.user_id, "name": s_user.name, "username": s_user.username, "role": s_user.role.value})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"ok": True})

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify(
            {"id": session["user_id"], "name": session.get("name"), "username": session.get("username"), "role": session.get("role")}
        )

    @app.route("/api/register", methods=["POST"], endpoint="register")
    def register_account():
        data = _payload()
        user_id = container.user_service.register(
            name=data.get("name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            role=_role(data.get("role")),
        )
        return jsonify({"id": user_id}), 201

    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @admin_required
    def users_list():
        return jsonify([u.to_public_dict() for u in container.user_service.list_users()])

    @app.route("/api/users", methods=["POST"], endpoint="users_create")
    @admin_required
    def users_create():
        data = _payload()
        user_id = container.user_service.add(
            current_role=current_role(),
            name=data.get("name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            role=_role(data.get("role")),
        )
        return jsonify({"id": user_id}), 201

    @app.route("/api/users/<user_id>", methods=["PUT"], endpoint="users_update")
    @admin_required
    def users_update(user_id: str):
        data = _payload()
        existing = container.user_service.get(user_id)
        if not existing:
            return error_response("المستخدم غير موجود", 404)
        updated = container.user_service.update(
            current_role=current_role(),
            user_id=user_id,
            name=data.get("name", existing.name),
            username=data.get("username", existing.username),
            role=_role(data.get("role"), existing.role),
            password=data.get("password") or None,
        )
        return jsonify(updated.to_public_dict())

    @app.route("/api/users/<user_id>", methods=["DELETE"], endpoint="users_delete")
    @admin_required
    def users_delete(user_id: str):
        container.user_service.delete(current_role=current_role(), current_user_id=session["user_id"], user_id=user_id)
        return jsonify({"ok": True})
