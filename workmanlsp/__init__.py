"""Workman language server launcher.

Resolves the command line (interpreter, config file, entry script, arguments
and environment) used to start the Deno-run Workman language server, and
launches it over stdio.
"""

__version__ = "0.1.0"
