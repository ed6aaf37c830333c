# =============================================================================
# core/user_profile.py  —  Local User Profile
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines the default profile for a fresh install, the avatar set the
#   profile (and any member) can pick from, and the validated "edit my
#   profile" operation.
#
# THE "me" MEMBER:
#   Every trip created on this device starts with a member whose id is "me".
#   Its name and avatar are COPIES of the profile.  After the profile
#   changes, core.trips.sync_profile pushes the new values into every trip;
#   nothing holds a shared reference to the profile.
# =============================================================================

from core.models import UserProfile, ValidationError


# -----------------------------------------------------------------------------
# Avatar set: 32 animal emoji
# -----------------------------------------------------------------------------
ANIMAL_EMOJIS: list[str] = [
    "🐶", "🐱", "🐭", "🐹", "🐰", "🦊", "🐻", "🐼",
    "🐨", "🐯", "🦁", "🐮", "🐷", "🐸", "🐵", "🐔",
    "🐧", "🐦", "🐣", "🐺", "🐗", "🐴", "🦄", "🐝",
    "🐛", "🦋", "🐌", "🐞", "🐜", "🦟", "🦗", "🕷️",
]

DEFAULT_PROFILE = UserProfile(name="自己", avatar=ANIMAL_EMOJIS[0])


def get_default_profile() -> UserProfile:
    """The profile used when nothing has been saved yet."""
    return DEFAULT_PROFILE


def update_profile(name: str, avatar: str) -> UserProfile:
    """Build a new profile from user input.

    Args:
        name: Display name; surrounding whitespace is dropped.
        avatar: Any non-empty string, usually one of ANIMAL_EMOJIS.

    Returns:
        The new UserProfile.

    Raises:
        ValidationError: if the name or avatar is blank.
    """
    if not name or not name.strip():
        raise ValidationError("Profile name is required.")
    if not avatar or not avatar.strip():
        raise ValidationError("Profile avatar is required.")
    return UserProfile(name=name.strip(), avatar=avatar.strip())


def list_avatars() -> list[str]:
    return list(ANIMAL_EMOJIS)
