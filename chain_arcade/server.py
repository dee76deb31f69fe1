"""
server.py
Static file server for the web bundle and the deployment manifest.

  GET /                   → <web_root>/index.html  (HEAD is routed the same way)
  GET /contractInfo.json  → the manifest (GAME_MANIFEST_PATH)
  GET /health             → {"status": "OK", "timestamp": ...}
  anything else           → file under <web_root>, or 404 JSON
"""

import argparse
import functools
import http.server
import json
import mimetypes
import os
from datetime import datetime, timezone
from urllib.parse import urlparse

from chain_arcade.contract_client import ChainConfig


class GameRequestHandler(http.server.SimpleHTTPRequestHandler):
    server_version = "ChainArcade/0.1"

    def end_headers(self):
        self.send_header("Access-Control-Allow-Origin", "*")
        super().end_headers()

    def log_message(self, format, *args):
        print(f"[server] {self.address_string()} {format % args}")

    def _json(self, status: int, payload: dict):
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _file(self, path: str):
        if not os.path.isfile(path):
            return self._json(404, {"error": "Route not found"})
        with open(path, "rb") as f:
            body = f.read()
        self.send_response(200)
        self.send_header("Content-Type", mimetypes.guess_type(path)[0] or "application/octet-stream")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def do_OPTIONS(self):
        self.send_response(204)
        self.send_header("Access-Control-Allow-Methods", "GET, HEAD, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def do_GET(self):
        path = urlparse(self.path).path
        try:
            if path == "/health":
                return self._json(200, {
                    "status": "OK",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                })
            if path == "/contractInfo.json":
                return self._file(self.server.manifest_path)
            if path in ("", "/"):
                return self._file(os.path.join(self.directory, "index.html"))
            if os.path.isfile(self.translate_path(path)):
                return super().do_HEAD() if self.command == "HEAD" else super().do_GET()
            return self._json(404, {"error": "Route not found"})
        except Exception as exc:
            print(f"[server] error serving {path}: {exc!r}")
            return self._json(500, {"error": "Something went wrong!"})

    do_HEAD = do_GET


def make_server(web_root: str, manifest_path: str, host: str = "127.0.0.1", port: int = 8000):
    handler = functools.partial(GameRequestHandler, directory=os.path.abspath(web_root))
    server = http.server.ThreadingHTTPServer((host, port), handler)
    server.manifest_path = os.path.abspath(manifest_path)
    server.daemon_threads = True
    return server


def main(argv=None):
    config = ChainConfig.from_env()
    parser = argparse.ArgumentParser(description="Serve the game bundle and contract manifest.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=config.port)
    parser.add_argument("--web-root", default=config.web_root)
    parser.add_argument("--manifest", default=config.manifest_path)
    args = parser.parse_args(argv)

    server = make_server(args.web_root, args.manifest, args.host, args.port)
    print(f"[server] Blockchain Game server running on port {server.server_address[1]}")
    print(f"[server] Visit http://{args.host}:{server.server_address[1]} to play the game")
    print("[server] Press Ctrl+C to stop the server")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
