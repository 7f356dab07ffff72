"""
Profiles, accounts and follows.

``profiles/<username>.json`` is the display projection edited by its owner;
saves carry the version token from the last read. ``users/<username>.json``
is the account record; only its ``followers``/``following`` lists are
written here.
"""

from typing import Any, Optional

from loguru import logger

from beatwave.domain.library.models import Track, utc_now_iso
from beatwave.domain.store import (
    BlobNotFoundError,
    BlobStore,
    StoreError,
    update_json,
)
from beatwave.domain.store.versioned import DEFAULT_MAX_ATTEMPTS

PROFILES_FOLDER = "profiles"
USERS_FOLDER = "users"
USERS_INDEX = "index.json"
DEFAULT_BIO = "Music artist on BeatWave"
DEFAULT_ARTIST_LIMIT = 12


def profile_path(username: str) -> str:
    return f"{PROFILES_FOLDER}/{username}.json"


def user_path(username: str) -> str:
    return f"{USERS_FOLDER}/{username}.json"


def default_profile(username: str) -> dict[str, Any]:
    """Profile synthesized for accounts that never saved one."""
    return {
        "name": username,
        "bio": DEFAULT_BIO,
        "location": "",
        "avatarLetter": username[:1].upper() or "?",
        "followers": 0,
        "verified": False,
        "createdAt": utc_now_iso(),
    }


def load_profile(store: BlobStore, username: str) -> tuple[dict[str, Any], Optional[str]]:
    """Return ``(profile, sha)``; sha is None when no profile is stored."""
    blob = store.read(profile_path(username))
    if blob is None:
        return default_profile(username), None
    try:
        profile = blob.json()
    except StoreError:
        profile = None
    if not isinstance(profile, dict):
        logger.warning(f"Malformed profile for {username}, using defaults")
        return default_profile(username), blob.version
    return profile, blob.version


def validate_profile(profile: dict[str, Any]) -> dict[str, Any]:
    """Check required fields and normalize the avatar letter.

    Raises:
        ValueError: If name or avatar letter is missing
    """
    name = str(profile.get("name") or "").strip()
    avatar = str(profile.get("avatarLetter") or "").strip().upper()
    if not name:
        raise ValueError("Name is required")
    if not avatar:
        raise ValueError("Avatar letter is required")
    return {**profile, "name": name, "avatarLetter": avatar[:1]}


def save_profile(
    store: BlobStore,
    username: str,
    profile: dict[str, Any],
    sha: Optional[str] = None,
) -> tuple[dict[str, Any], str]:
    """Write a profile, conditionally when ``sha`` is given.

    Without ``sha`` the write overwrites whatever is stored.

    Raises:
        ValueError: If the profile is invalid
        VersionConflictError: If ``sha`` is stale
    """
    profile = {**validate_profile(profile), "updatedAt": utc_now_iso()}
    new_sha = store.write_json(
        profile_path(username),
        profile,
        sha or None,
        message=f"Update profile for {username}",
    )
    logger.info(f"Saved profile for {username}")
    return profile, new_sha


def get_user(store: BlobStore, username: str) -> Optional[dict[str, Any]]:
    data, _ = store.read_json(user_path(username))
    return data if isinstance(data, dict) else None


def list_users(store: BlobStore) -> list[dict[str, Any]]:
    users = []
    for path in store.list(USERS_FOLDER):
        if path.endswith(f"/{USERS_INDEX}"):
            continue
        try:
            data, _ = store.read_json(path)
        except StoreError as e:
            logger.warning(f"Skipping unreadable user document {path}: {e}")
            continue
        if isinstance(data, dict) and data.get("username"):
            users.append(data)
    return users


def _names(value: Any) -> list[str]:
    return [str(v) for v in value] if isinstance(value, list) else []


def toggle_follow(
    store: BlobStore,
    username: str,
    follow_username: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> bool:
    """Follow or unfollow; updates both account documents.

    Returns:
        True if ``username`` now follows ``follow_username``

    Raises:
        ValueError: If a user tries to follow themselves
        BlobNotFoundError: If either account does not exist
    """
    if username == follow_username:
        raise ValueError("Users cannot follow themselves")
    for name in (username, follow_username):
        if get_user(store, name) is None:
            raise BlobNotFoundError(user_path(name), f"User not found: {name}")

    def flip_following(user: Any) -> Optional[dict[str, Any]]:
        if not isinstance(user, dict):
            raise BlobNotFoundError(user_path(username))
        following = _names(user.get("following"))
        if follow_username in following:
            following.remove(follow_username)
        else:
            following.append(follow_username)
        user["following"] = following
        return user

    result = update_json(
        store,
        user_path(username),
        flip_following,
        default=lambda: None,
        max_attempts=max_attempts,
        message=f"{username} follow {follow_username}",
    )
    now_following = follow_username in result.data["following"]

    def sync_followers(user: Any) -> Optional[dict[str, Any]]:
        if not isinstance(user, dict):
            raise BlobNotFoundError(user_path(follow_username))
        followers = _names(user.get("followers"))
        if now_following and username not in followers:
            followers.append(username)
        elif not now_following and username in followers:
            followers.remove(username)
        else:
            return None
        user["followers"] = followers
        return user

    update_json(
        store,
        user_path(follow_username),
        sync_followers,
        default=lambda: None,
        max_attempts=max_attempts,
        message=f"Followers of {follow_username}",
    )
    logger.info(f"{username} {'follows' if now_following else 'unfollowed'} {follow_username}")
    return now_following


def build_artists(
    users: list[dict[str, Any]], tracks: list[Track], limit: int = DEFAULT_ARTIST_LIMIT
) -> list[dict[str, Any]]:
    """Artist directory entries sorted by follower count."""
    artists = []
    for user in users:
        name = user["username"]
        own = [t for t in tracks if t.artist == name]
        artists.append(
            {
                "name": name,
                "followers": len(_names(user.get("followers"))),
                "following": len(_names(user.get("following"))),
                "tracksCount": len(own),
                "totalPlays": sum(t.plays for t in own),
                "createdAt": user.get("createdAt"),
            }
        )
    artists.sort(key=lambda a: a["followers"], reverse=True)
    return artists[: max(0, limit)]
