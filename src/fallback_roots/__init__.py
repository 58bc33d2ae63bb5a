"""
fallback_roots — embedded fallback root bundle generator.

Reads Mozilla's NSS certdata.txt (local file or HTTP), keeps the
unconstrained server-auth roots, orders them deterministically and writes
an importable Python module that carries them as annotated PEM.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
