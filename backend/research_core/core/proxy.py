"""Trust ``X-Forwarded-*`` headers when deployed behind a reverse proxy."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap the WSGI app in :class:`ProxyFix` when ``PROXY_FIX_HOPS`` > 0.

    The hop count is applied to ``X-Forwarded-For``/``-Proto``/``-Host``.
    Disabled by default so a client cannot spoof its address when the app is
    exposed directly.
    """
    hops = int(app.config.get("PROXY_FIX_HOPS", 0) or 0)
    if hops > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops)  # type: ignore[method-assign]
