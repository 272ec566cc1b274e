"""Flask application factory for the memory map JSON view.

``create_app`` builds a parser and returns a Flask app with two
endpoints:

- ``GET /api/regions``: regions of a process, optionally narrowed by
  ``address``, ``path`` (+ ``exact``), or ``perms`` query parameters.
- ``GET /api/status``: whether this host has a backend, and which.

Failed parses map onto HTTP statuses so clients can tell "no such
process" from "not allowed" without reading the message.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, request

from py_vmmap.config import ParserConfig
from py_vmmap.parser import ProcessMemoryParser
from py_vmmap.permissions import MemoryPermissions
from py_vmmap.region import MemoryRegion
from py_vmmap.result import ErrorCode

_HTTP_BAD_REQUEST = 400
_HTTP_FORBIDDEN = 403
_HTTP_NOT_FOUND = 404
_HTTP_SERVER_ERROR = 500
_HTTP_NOT_IMPLEMENTED = 501

_STATUS_FOR_ERROR: dict[ErrorCode, int] = {
    ErrorCode.PROCESS_NOT_FOUND: _HTTP_NOT_FOUND,
    ErrorCode.PERMISSION_DENIED: _HTTP_FORBIDDEN,
    ErrorCode.PLATFORM_NOT_SUPPORTED: _HTTP_NOT_IMPLEMENTED,
}

_TRUE_WORDS = frozenset({"1", "true", "yes"})


def region_to_dict(region: MemoryRegion) -> dict[str, object]:
    """Return a JSON-friendly view of *region*.

    Addresses are hex strings; 64-bit values overflow some JSON readers.
    """
    return {
        "start": f"0x{region.start:x}",
        "end": f"0x{region.end:x}",
        "size": region.size,
        "perms": region.permissions.to_string(),
        "offset": f"0x{region.offset:x}",
        "device": region.device,
        "inode": region.inode,
        "pathname": region.pathname,
    }


def _bad_request(message: str) -> tuple[Response, int]:
    return jsonify({"error": "BAD_REQUEST", "message": message}), _HTTP_BAD_REQUEST


def create_app(parser: ProcessMemoryParser | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        parser: Parser to serve from; a default one is built if omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    mem = parser if parser is not None else ProcessMemoryParser(config=ParserConfig.from_env())
    app = Flask(__name__)

    @app.route("/api/regions")
    def regions() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Return the regions of ``pid`` as JSON.

        Returns:
            JSON with a ``regions`` list, or ``error``/``message`` fields.

        """
        args = request.args
        try:
            pid = int(args["pid"]) if "pid" in args else None
            address = int(args["address"], 0) if "address" in args else None
        except ValueError:
            return _bad_request("pid and address must be integers")

        if address is not None:
            result = mem.find_regions_containing(address, pid)
        elif "path" in args:
            exact = args.get("exact", "").lower() in _TRUE_WORDS
            result = mem.find_regions_by_path(args["path"], pid, exact_match=exact)
        elif "perms" in args:
            perms = MemoryPermissions.from_string(args["perms"].ljust(4, "-"))
            result = mem.find_regions_by_permissions(perms, pid)
        else:
            result = mem.parse_process(pid)

        if result.has_error:
            status = _STATUS_FOR_ERROR.get(result.error, _HTTP_SERVER_ERROR)
            body = {"error": result.error.name, "message": result.error_message}
            return jsonify(body), status

        return jsonify({"regions": [region_to_dict(r) for r in result.value]})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return platform support and the active backend name."""
        backend = mem.backend
        return jsonify(
            {
                "supported": backend is not None and backend.is_available(),
                "backend": backend.name if backend is not None else None,
            }
        )

    return app


def main() -> None:
    """Run the development server.

    This is the ``py-vmmap-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
