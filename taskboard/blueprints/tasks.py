"""Tasks blueprint — /api/tasks/* and /api/lists/<id>/tasks

Route Map:
  GET    /api/lists/<id>/tasks              — Tasks in a list, by position
  POST   /api/lists/<id>/tasks              — Create task
  GET    /api/tasks?assigned_to=me|<id>     — Tasks assigned to a user
  GET    /api/tasks/<id>                    — Task detail
  PATCH  /api/tasks/<id>                    — Edit title/description/story_points/due_date
  DELETE /api/tasks/<id>                    — Delete task (points stay)
  PATCH  /api/tasks/<id>/move               — Move to list/position
  PATCH  /api/tasks/<id>/assign             — Set or clear assignee
  PATCH  /api/tasks/<id>/complete           — Complete + award story points
  POST   /api/tasks/<id>/award              — Retry the completion award
"""

from flask import Blueprint, jsonify, request

from taskboard.decorators import actor, api_login_required, json_body, services
from taskboard.serializers import entry_dict, task_dict

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api")


# ─── Tasks in a list ─────────────────────────────────────────────

@tasks_bp.route("/lists/<list_id>/tasks", methods=["GET"])
@api_login_required
def list_tasks(list_id):
    tasks = services().tasks.tasks_for_list(actor(), list_id)
    return jsonify([task_dict(t) for t in tasks])


@tasks_bp.route("/lists/<list_id>/tasks", methods=["POST"])
@api_login_required
def create_task(list_id):
    data = json_body()
    task = services().tasks.create_task(
        actor(),
        list_id,
        title=data.get("title"),
        story_points=data.get("story_points", 1),
        position=data.get("position"),
        description=data.get("description"),
        assigned_to=data.get("assigned_to"),
        due_date=data.get("due_date"),
    )
    return jsonify(task_dict(task)), 201


# ─── Single task ─────────────────────────────────────────────────

@tasks_bp.route("/tasks", methods=["GET"])
@api_login_required
def assigned_tasks():
    user_id = request.args.get("assigned_to", "me")
    if user_id == "me":
        user_id = actor().id
    tasks = services().tasks.tasks_assigned_to(actor(), user_id)
    return jsonify([task_dict(t) for t in tasks])


@tasks_bp.route("/tasks/<task_id>", methods=["GET"])
@api_login_required
def get_task(task_id):
    task = services().tasks.get_task(actor(), task_id)
    return jsonify(task_dict(task))


@tasks_bp.route("/tasks/<task_id>", methods=["PATCH"])
@api_login_required
def update_task(task_id):
    task = services().tasks.update_task(actor(), task_id, json_body())
    return jsonify(task_dict(task))


@tasks_bp.route("/tasks/<task_id>", methods=["DELETE"])
@api_login_required
def delete_task(task_id):
    services().tasks.delete_task(actor(), task_id)
    return "", 204


# ─── Lifecycle ───────────────────────────────────────────────────

@tasks_bp.route("/tasks/<task_id>/move", methods=["PATCH"])
@api_login_required
def move_task(task_id):
    data = json_body()
    task = services().tasks.move_task(
        actor(), task_id, data.get("list_id"), data.get("position")
    )
    return jsonify(task_dict(task))


@tasks_bp.route("/tasks/<task_id>/assign", methods=["PATCH"])
@api_login_required
def assign_task(task_id):
    data = json_body()
    task = services().tasks.assign_task(actor(), task_id, data.get("assigned_to"))
    return jsonify(task_dict(task))


@tasks_bp.route("/tasks/<task_id>/complete", methods=["PATCH"])
@api_login_required
def complete_task(task_id):
    task = services().tasks.complete_task(actor(), task_id)
    return jsonify(task_dict(task))


@tasks_bp.route("/tasks/<task_id>/award", methods=["POST"])
@api_login_required
def retry_award(task_id):
    entry = services().tasks.retry_award(actor(), task_id)
    return jsonify(entry_dict(entry)), 201
