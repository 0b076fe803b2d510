from dataclasses import dataclass
from typing import Optional

ANONYMOUS = "Anonymous"


@dataclass(frozen=True)
class Identity:
    """The name/id pair a message or upload is attributed to."""
    name: str
    profile_id: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return self.profile_id is None


def resolve_identity(profile=None, display_name: Optional[str] = None) -> Identity:
    """
    Priority: signed-in profile, then a locally entered display name,
    then the literal "Anonymous".
    """
    if profile is not None:
        return Identity(name=profile.username, profile_id=profile.id)
    if display_name and display_name.strip():
        return Identity(name=display_name.strip())
    return Identity(name=ANONYMOUS)


def is_own_message(author_profile_id: Optional[str], viewer_profile_id: Optional[str]) -> bool:
    # A viewer without a profile never owns anything, even under a matching name
    if viewer_profile_id is None:
        return False
    return author_profile_id == viewer_profile_id


def author_label(author_display_name: str, author_profile_id: Optional[str], viewer_profile_id: Optional[str]) -> str:
    if is_own_message(author_profile_id, viewer_profile_id):
        return "You"
    return author_display_name
