"""
Development server - Serves the output tree and live-reloads browsers.

HTML responses get a small script injected that listens on a Server-Sent
Events stream; DevServer.reload() bumps a generation counter and every
connected page reloads itself.
"""

import logging
import threading
import webbrowser
from pathlib import Path

from flask import Flask, Response, abort, send_from_directory
from flask_cors import CORS
from werkzeug.security import safe_join
from werkzeug.serving import make_server

logger = logging.getLogger(__name__)

RELOAD_ENDPOINT = "/__assetpipe/reload"
RELOAD_SNIPPET = (
    "<script>"
    f'new EventSource("{RELOAD_ENDPOINT}").onmessage = function () {{ location.reload(); }};'
    "</script>"
)
KEEPALIVE_SECONDS = 15.0


def inject_reload_script(html: str) -> str:
    """Insert the reload client before </body>, or append it."""
    marker = html.lower().rfind("</body>")
    if marker == -1:
        return html + RELOAD_SNIPPET
    return html[:marker] + RELOAD_SNIPPET + html[marker:]


class DevServer:
    """
    Static file server with live reload.

    start() is idempotent and returns immediately: the server runs on a
    daemon thread until stop() or process exit.
    """

    def __init__(
        self,
        root: Path,
        host: str = "127.0.0.1",
        port: int = 3000,
        open_browser: bool = False,
        cors: bool = True,
    ):
        self.root = root
        self.host = host
        self.port = port
        self.open_browser = open_browser
        self.cors = cors

        self._generation = 0
        self._closing = False
        self._cond = threading.Condition()
        self._server = None
        self._thread: threading.Thread | None = None
        self.app = self._create_app()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def _create_app(self) -> Flask:
        app = Flask(__name__)
        if self.cors:
            CORS(app, send_wildcard=True)

        @app.after_request
        def no_cache(response: Response) -> Response:
            response.headers["Cache-Control"] = "no-store"
            return response

        @app.route(RELOAD_ENDPOINT)
        def reload_stream() -> Response:
            return Response(self._events(), mimetype="text/event-stream")

        @app.route("/", defaults={"path": ""})
        @app.route("/<path:path>")
        def static_file(path: str) -> Response:
            return self._serve(path)

        return app

    def _serve(self, path: str) -> Response:
        root = self.root.resolve()
        joined = safe_join(str(root), path) if path else str(root)
        if joined is None:
            abort(404)

        target = Path(joined)
        if target.is_dir():
            target = target / "index.html"
        if not target.is_file():
            abort(404)

        if target.suffix.lower() in (".html", ".htm"):
            html = target.read_text(encoding="utf-8", errors="replace")
            return Response(inject_reload_script(html), mimetype="text/html")

        return send_from_directory(str(target.parent), target.name)

    def _events(self):
        seen = self._generation
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._generation != seen or self._closing, timeout=KEEPALIVE_SECONDS)
                if self._closing:
                    return
                current = self._generation
            if current != seen:
                seen = current
                yield "data: reload\n\n"
            else:
                yield ": keepalive\n\n"

    def start(self) -> str:
        """Start serving in the background (no-op when already running)."""
        if self.running:
            return self.url

        self._closing = False
        self._server = make_server(self.host, self.port, self.app, threaded=True)
        self.port = self._server.server_port
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="assetpipe-dev-server",
        )
        self._thread.start()
        logger.info(f"Serving {self.root} at {self.url}")

        if self.open_browser:
            webbrowser.open(self.url)
        return self.url

    def reload(self) -> None:
        """Tell every connected browser to reload."""
        with self._cond:
            self._generation += 1
            self._cond.notify_all()
        logger.debug(f"Reload #{self._generation} sent")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop serving."""
        with self._cond:
            self._closing = True
            self._cond.notify_all()
        if self._server is not None:
            self._server.shutdown()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._server = None
        self._thread = None
        logger.info("Dev server stopped")
