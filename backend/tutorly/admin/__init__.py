from tutorly.admin.profiles import (
    CreateProfileArgs,
    DuplicateEmailError,
    UpdateProfileArgs,
    create_profile,
    list_profiles,
    serialize_profile,
    update_profile,
)

__all__ = [
    "CreateProfileArgs",
    "DuplicateEmailError",
    "UpdateProfileArgs",
    "create_profile",
    "list_profiles",
    "serialize_profile",
    "update_profile",
]
