"""
HTTP proxy for the robot's control interface.

Serves a small control page on localhost and forwards control commands and
the camera stream to the gateway reached through the secondary adapter:

    Browser (localhost:8080) -> this app -> gateway (e.g. 192.168.4.1)

Endpoints:
- ``GET /``        control page
- ``GET /control`` forwards the query string to ``http://<gw>/control``
- ``GET /stream``  streams ``http://<gw>:81/stream`` (MJPEG)

Handlers are plain ``def`` functions so FastAPI runs the blocking upstream
requests on its threadpool.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from string import Template
from typing import Iterator

import requests
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, Response, StreamingResponse

from wifiproxy.connection import gateway_url

logger = logging.getLogger(__name__)

# ESP32-CAM firmware serves MJPEG on a second port
STREAM_PORT = 81
DEFAULT_STREAM_TYPE = "multipart/x-mixed-replace; boundary=frame"
STREAM_CHUNK_SIZE = 4096

INDEX_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>wifi-proxy: $gateway</title>
  <style>
    body { font-family: sans-serif; background: #111; color: #eee; text-align: center; }
    img { max-width: 100%; border: 1px solid #444; }
    form { margin: 1em; }
    input, button { font-size: 1em; margin: 0 0.25em; }
  </style>
</head>
<body>
  <h1>Robot control</h1>
  <p>Gateway: $gateway</p>
  <img src="$stream_url" alt="camera stream">
  <form id="control">
    <input name="var" placeholder="var" required>
    <input name="val" placeholder="val" required>
    <button type="submit">Send</button>
  </form>
  <pre id="result"></pre>
  <script>
    document.getElementById("control").addEventListener("submit", function (ev) {
      ev.preventDefault();
      var params = new URLSearchParams(new FormData(ev.target));
      fetch("$control_url?" + params.toString())
        .then(function (r) { return r.text(); })
        .then(function (t) { document.getElementById("result").textContent = t; });
    });
  </script>
</body>
</html>
""")


@dataclass(frozen=True)
class ServerConfig:
    """Proxy settings: the gateway to forward to and the local port."""

    gateway: str
    port: int = 8080
    request_timeout: float = 10.0


def render_index(config: ServerConfig) -> str:
    """Render the control page for *config*."""
    return INDEX_TEMPLATE.substitute(
        gateway=html.escape(config.gateway),
        stream_url="/stream",
        control_url="/control",
    )


def _iter_upstream(upstream: requests.Response) -> Iterator[bytes]:
    try:
        yield from upstream.iter_content(chunk_size=STREAM_CHUNK_SIZE)
    finally:
        upstream.close()


def create_app(config: ServerConfig) -> FastAPI:
    """Build the proxy application for *config*.

    The control page is rendered once here and shared by every request.
    """
    app = FastAPI(title="wifi-proxy")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    index_html = render_index(config)

    @app.get("/", response_class=HTMLResponse)
    def index() -> HTMLResponse:
        return HTMLResponse(index_html)

    @app.get("/control")
    def control(request: Request) -> Response:
        url = gateway_url(config.gateway, "/control")
        if request.url.query:
            url = f"{url}?{request.url.query}"
        try:
            upstream = requests.get(url, timeout=config.request_timeout)
            upstream.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Control proxy to %s failed: %s", url, e)
            return PlainTextResponse(f"Proxy error: {e}", status_code=502)
        return PlainTextResponse(upstream.text, status_code=200)

    @app.get("/stream")
    def stream() -> Response:
        url = gateway_url(config.gateway, "/stream", port=STREAM_PORT)
        try:
            # Connect timeout only; the stream itself is unbounded
            upstream = requests.get(url, stream=True, timeout=(config.request_timeout, None))
        except requests.exceptions.RequestException as e:
            logger.warning("Stream proxy to %s failed: %s", url, e)
            return PlainTextResponse(f"Stream error: {e}", status_code=502)
        content_type = upstream.headers.get("content-type", DEFAULT_STREAM_TYPE)
        return StreamingResponse(_iter_upstream(upstream), media_type=content_type)

    return app


def run_server(config: ServerConfig, *, host: str = "0.0.0.0") -> None:
    """Serve the proxy until interrupted."""
    logger.info("Proxying to gateway %s on port %d", config.gateway, config.port)
    uvicorn.run(
        create_app(config),
        host=host,
        port=config.port,
        log_level="info",
        access_log=False,
    )
