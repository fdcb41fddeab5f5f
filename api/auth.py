"""
Authentication blueprint (mounted at /api/v1/auth):
- POST /register
- POST /login
- POST /refresh
- POST /logout       (bearer)
- POST /logout-all   (bearer)
- GET  /me           (bearer)
- GET  /sessions     (bearer)
- GET  /admin        (admin only)

Access tokens are short-lived HS256 JWTs; refresh tokens are opaque random
strings stored server-side so they can be revoked per device or all at once.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app

from models.schemas.auth import AuthOutSchema, RefreshTokenSchema, SessionOutSchema, TokenOutSchema
from models.schemas.user import UserCreateSchema, UserLoginSchema, UserProfileSchema
from services.session_manager import ClientMeta, SessionManager
from utils.decorators import current_identity, jwt_required, roles_required
from models.user import UserRole

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
user_profile_schema = UserProfileSchema()
refresh_token_schema = RefreshTokenSchema()
auth_out_schema = AuthOutSchema()
token_out_schema = TokenOutSchema()
session_list_out_schema = SessionOutSchema(many=True)


def _manager() -> SessionManager:
    return current_app.extensions["session_manager"]


def _client_meta() -> ClientMeta:
    user_agent = request.headers.get("User-Agent")
    return ClientMeta(
        user_agent=user_agent[:255] if user_agent else None,
        ip_address=request.remote_addr,
    )


@bp.post("/register")
def register():
    """
    Register a new user and start a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [name, email, password]
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created (returns tokens)
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    result = _manager().register(
        name=data["name"],
        email=data["email"],
        password=data["password"],
        client=_client_meta(),
    )
    return jsonify(auth_out_schema.dump(result)), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid email or password
      403:
        description: Account is deactivated
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    result = _manager().login(data["email"], data["password"], client=_client_meta())
    return jsonify(auth_out_schema.dump(result)), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new access token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid, expired or revoked refresh token
      403:
        description: Account is deactivated
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_token_schema.load(payload)

    result = _manager().refresh(data["refresh_token"])
    return jsonify(token_out_schema.dump(result)), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes one refresh token session
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      204:
        description: ""
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_token_schema.load(payload)

    _manager().logout(data["refresh_token"])
    return ("", 204)


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    """
    Logout from every device: revokes all refresh tokens of the caller
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: ""
      401:
        description: Unauthorized
    """
    _manager().logout_all(current_identity().identity_id)
    return ("", 204)


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user profile
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      404:
        description: User not found
    """
    user = _manager().profile(current_identity().identity_id)
    return jsonify({"data": user_profile_schema.dump(user)}), 200


@bp.get("/sessions")
@jwt_required()
def sessions():
    """
    List the caller's active sessions (one per device)
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    rows = _manager().list_sessions(current_identity().identity_id)
    return jsonify({"data": session_list_out_schema.dump(rows)}), 200


@bp.get("/admin")
@roles_required([UserRole.ADMIN])
def admin_area():
    """
    Admin-only endpoint
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      403:
        description: Insufficient role
    """
    return jsonify({"data": current_identity().to_dict()}), 200
