"""Development server for Perseus.

Serves a development build of the site with live reload:
- Injects a reload script into HTML responses when ``live_reload`` is on.
- Rejects directory listings and missing paths with a 404 (serving 404.html when present).
- Watches source folders and triggers rebuilds plus client reloads.

Rebuilds never overlap: a rebuild requested while another is running waits
for it to finish, then rebuilds only if the sources changed meanwhile.

Key classes:
- DevServer: Main class for running the development server.
- _ReloadHandler: HTTP request handler that injects reload script and enforces 404s.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import asyncio
import functools
import json
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import build_site
from .config import CONFIG_FILENAME, BuildMode, ConfigError, load_config
from .errors import BuildError


class _ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects live reload script into HTML pages.

    Attributes:
        reload_script: JavaScript code for WebSocket connection to trigger reloads.
    """

    reload_script_template = """
    <script>
    (() => {{
      const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
      ws.onmessage = (event) => {{
        const data = JSON.parse(event.data || '{{}}');
        if (data.type === 'reload') location.reload();
      }};
    }})();
    </script>
    """
    reload_script = reload_script_template.format(ws_port=35729)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        # Never expose directory listings; treat as missing content.
        return self._serve_404()

    def _inject(self, content: str) -> str:
        if not self.reload_script:
            return content
        if "</body>" in content:
            return content.replace("</body>", f"{self.reload_script}</body>")
        return content + self.reload_script

    def _send_html(self, status: int, content: str) -> None:
        encoded = self._inject(content).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _serve_404(self):
        """Serve 404.html (when present) with injected reload script and a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            self._send_html(404, error_page.read_text(encoding="utf-8"))
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path = self.translate_path(self.path)
        path_obj = Path(path)
        if path_obj.is_dir():
            index_path = path_obj / "index.html"
            if index_path.exists():
                path = str(index_path)
                path_obj = index_path
            else:
                return self._serve_404()
        elif not path_obj.exists():
            return self._serve_404()

        if path.endswith(".html"):
            self._send_html(200, path_obj.read_text(encoding="utf-8"))
            return None
        return super().send_head()


class DevServer:
    """Development server with live reload functionality.

    Attributes:
        project_root: Root directory of the project.
        config: Development configuration of the site.
        output_dir: Directory where built site is served.
        ws_port: Port for WebSocket connections.
        http_port: Port for HTTP server.
    """

    def __init__(self, project_root: Path, http_port: int | None = None, ws_port: int | None = None):
        """Initialize the development server.

        Args:
            project_root: Root directory of the project.
            http_port: Optional override for HTTP port.
            ws_port: Optional override for the live reload websocket port.

        Raises:
            ConfigError: If the project configuration is invalid.
        """
        self.project_root = project_root
        self.config = load_config(project_root, BuildMode.DEVELOPMENT)
        self.output_dir = project_root / self.config.output_dir
        self._staging_dir = self.output_dir.with_suffix(self.output_dir.suffix + ".staging")
        self._retired_dir = self.output_dir.with_suffix(self.output_dir.suffix + ".old")
        self.http_port = int(http_port or self.config.port)
        if ws_port is not None:
            self.ws_port = ws_port
        elif http_port is not None:
            self.ws_port = self.http_port + 1
        else:
            self.ws_port = self.config.ws_port
        self._reload_script = (
            _ReloadHandler.reload_script_template.format(ws_port=self.ws_port)
            if self.config.live_reload
            else ""
        )
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._rebuild_lock = threading.Lock()
        self._last_signature: tuple | None = None
        self._post_build_delay = 0.05

    def start(self) -> None:  # pragma: no cover - integration path
        self._build()
        self._last_signature = self._compute_signature()
        threading.Thread(target=self._start_http, daemon=True).start()
        if self.config.live_reload:
            threading.Thread(target=self._start_ws, daemon=True).start()
        self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script},
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.output_dir} at http://localhost:{self.http_port}")
        httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            print(f"WebSocket server failed to start (port {self.ws_port}): {exc}")
            return

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()  # Run forever

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self):
        if not self.config.live_reload:
            return
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in self._ws_clients:
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        for folder in [self.config.source_dir, "data"]:
            watch_path = self.project_root / folder
            if watch_path.exists():
                observer.schedule(handler, str(watch_path), recursive=True)
        # Watch root for perseus.yaml
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer

    def _build(self) -> None:
        staging = self._prepare_staging_dir()
        build_site(
            self.project_root,
            mode=BuildMode.DEVELOPMENT,
            clean_output=True,
            output_dir_override=staging,
        )
        self._activate_staging(staging)

    def rebuild(self) -> bool:
        """Rebuild the site if its sources changed since the last build.

        Waits for a rebuild already in progress to finish first.

        Returns:
            True if a rebuild ran and succeeded.
        """
        with self._rebuild_lock:
            signature = self._compute_signature()
            if signature is not None and signature == self._last_signature:
                return False
            print("Change detected; rebuilding...")
            try:
                self._build()
            except (BuildError, ConfigError) as exc:
                print(f"Build failed: {exc}")
                self._last_signature = signature
                return False
            self._last_signature = signature
            if self._post_build_delay:
                time.sleep(self._post_build_delay)
            self._broadcast_reload()
            return True

    def _compute_signature(self) -> tuple | None:
        entries: list[tuple] = []
        roots = [self.project_root / self.config.source_dir, self.project_root / "data"]
        for root in roots:
            if not root.exists():
                continue
            for path in sorted(root.rglob("*")):
                if path.is_dir():
                    continue
                try:
                    stat = path.stat()
                except OSError:
                    continue
                rel = path.relative_to(self.project_root)
                entries.append((str(rel), stat.st_mtime_ns, stat.st_size))
        config_path = self.project_root / CONFIG_FILENAME
        if config_path.exists():
            stat = config_path.stat()
            entries.append((CONFIG_FILENAME, stat.st_mtime_ns, stat.st_size))
        return tuple(entries) if entries else None

    def _prepare_staging_dir(self) -> Path:
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True, exist_ok=True)
        return staging

    def _activate_staging(self, staging: Path) -> None:
        """Swap the staging build in, moving the old output aside before deleting it."""
        target = self.output_dir
        retired = self._retired_dir
        if retired.exists():
            shutil.rmtree(retired)
        if target.exists():
            os.replace(target, retired)
        os.replace(staging, target)
        if retired.exists():
            shutil.rmtree(retired)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        # Skip changes in output/staging directories
        for ignored in (
            self.server.output_dir, self.server._staging_dir, self.server._retired_dir
        ):
            try:
                path.relative_to(ignored)
                return
            except ValueError:
                pass
        if path.parent == self.server.project_root and path.name != CONFIG_FILENAME:
            return
        self.server.rebuild()
