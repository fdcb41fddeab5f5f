from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app

from models.schemas.user import UserProfileSchema, UserRoleSchema
from utils.decorators import roles_required
from models.user import UserRole

bp = Blueprint("users", __name__)

user_profile_schema = UserProfileSchema()
user_role_schema = UserRoleSchema()


@bp.patch("/users/<user_id>/role")
@roles_required([UserRole.ADMIN])
def set_role(user_id: str):
    """
    Admin-only: change a user's role. Takes effect on the user's next refresh.
    Body: { "role": "moderator" }
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             role: { type: string, enum: [user, admin, moderator] }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    payload = request.get_json(silent=True) or {}
    data = user_role_schema.load(payload)

    user = current_app.extensions["session_manager"].change_role(user_id, data["role"])
    return jsonify({"data": user_profile_schema.dump(user)}), 200


@bp.post("/users/<user_id>/deactivate")
@roles_required([UserRole.ADMIN])
def deactivate(user_id: str):
    """
    Admin-only: deactivate an account and revoke all of its sessions
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = current_app.extensions["session_manager"].deactivate_account(user_id)
    return jsonify({"data": user_profile_schema.dump(user)}), 200


@bp.delete("/users/<user_id>")
@roles_required([UserRole.ADMIN])
def delete_user(user_id: str):
    """
    Admin-only: soft-delete an account and revoke all of its sessions
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
    """
    current_app.extensions["session_manager"].delete_account(user_id)
    return ("", 204)
