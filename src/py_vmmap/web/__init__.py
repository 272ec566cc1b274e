"""JSON web view over the memory map parser.

This package provides a Flask application exposing region queries over
HTTP.  It is an **optional** extra; install with::

    pip install py-vmmap[web]

The ``create_app`` factory in ``app.py`` serves two endpoints:

- ``GET /api/regions``: regions of a process as JSON.
- ``GET /api/status``: platform support and active backend.
"""
