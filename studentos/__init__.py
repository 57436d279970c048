"""Backend package: store accessors, candidate lifecycle, feed and HTTP API.

Turns extracted task candidates into confirmed, user-owned tasks behind an
authenticated REST surface.
"""
