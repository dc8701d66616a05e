"""stackpkg CLI: Typer-based command-line interface.

Provides the ``stackpkg`` command with ``install`` and ``unpack`` for
running the acquisition pipeline, plus ``platform`` and ``installed`` for
inspecting the host.

All output uses Rich for formatted terminal display.
"""
