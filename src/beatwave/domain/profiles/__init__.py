"""Profiles domain - display profiles, account follows and the artist directory."""

from .repository import (
    build_artists,
    default_profile,
    get_user,
    list_users,
    load_profile,
    profile_path,
    save_profile,
    toggle_follow,
    user_path,
    validate_profile,
)

__all__ = [
    "build_artists",
    "default_profile",
    "get_user",
    "list_users",
    "load_profile",
    "profile_path",
    "save_profile",
    "toggle_follow",
    "user_path",
    "validate_profile",
]
