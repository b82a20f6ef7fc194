from tutorly.security.dependencies import Actor, require_actor, require_admin_api_key

__all__ = [
    "Actor",
    "require_actor",
    "require_admin_api_key",
]
