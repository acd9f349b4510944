"""Runtime package.

Environment parsing and logging setup. Nothing here runs on import; callers
opt in via ``load_settings()`` and ``configure_logging()``.
"""

__all__: list[str] = []
