"""Web panel for wordclock_panel."""

from wordclock_panel.web.app import create_app

__all__ = ["create_app"]
