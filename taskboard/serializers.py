"""JSON shapes for API responses. Timestamps are ISO-8601 strings."""


def _iso(value):
    return value.isoformat() if value else None


def team_dict(team):
    return {
        "id": team.id,
        "name": team.name,
        "created_at": _iso(team.created_at),
    }


def user_dict(user):
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role,
        "team_id": user.team_id,
        "total_points": user.total_points,
        "avatar_url": user.avatar_url,
    }


def board_dict(board, include_lists=False):
    data = {
        "id": board.id,
        "name": board.name,
        "description": board.description,
        "team_id": board.team_id,
        "created_by": board.created_by,
        "created_at": _iso(board.created_at),
    }
    if include_lists:
        data["lists"] = [list_dict(blist, include_tasks=True) for blist in board.lists]
    return data


def list_dict(blist, include_tasks=False):
    data = {
        "id": blist.id,
        "board_id": blist.board_id,
        "name": blist.name,
        "position": blist.position,
    }
    if include_tasks:
        data["tasks"] = [task_dict(t) for t in blist.tasks]
    return data


def task_dict(task):
    return {
        "id": task.id,
        "list_id": task.list_id,
        "title": task.title,
        "description": task.description,
        "story_points": task.story_points,
        "assigned_to": task.assigned_to,
        "position": task.position,
        "due_date": _iso(task.due_date),
        "completed_at": _iso(task.completed_at),
        "completed_by": task.completed_by,
        "is_completed": task.is_completed,
        "created_at": _iso(task.created_at),
        "updated_at": _iso(task.updated_at),
    }


def entry_dict(entry):
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "points_earned": entry.points_earned,
        "reason": entry.reason,
        "task_id": entry.task_id,
        "awarded_by": entry.awarded_by,
        "notes": entry.notes,
        "created_at": _iso(entry.created_at),
    }


def shop_item_dict(item):
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "point_cost": item.point_cost,
        "category": item.category,
        "image_url": item.image_url,
        "is_active": item.is_active,
    }


def redemption_dict(redemption):
    return {
        "id": redemption.id,
        "user_id": redemption.user_id,
        "shop_item_id": redemption.shop_item_id,
        "points_spent": redemption.points_spent,
        "redeemed_at": _iso(redemption.redeemed_at),
    }
