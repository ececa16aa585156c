_LOADED = False


def load_app_service_modules() -> None:
    global _LOADED
    if _LOADED:
        return

    from ccswitch.apps.claude import service as _claude_service  # noqa: F401
    from ccswitch.apps.codex import service as _codex_service  # noqa: F401
    from ccswitch.apps.gemini import service as _gemini_service  # noqa: F401
    from ccswitch.apps.opencode import service as _opencode_service  # noqa: F401

    _LOADED = True
