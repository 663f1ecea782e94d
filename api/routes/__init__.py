"""API routes package"""

from . import users, menus, completions, meals, notifications, recommendations, jobs, health

__all__ = ["users", "menus", "completions", "meals", "notifications", "recommendations", "jobs", "health"]
