"""CLI layer — option parsing, session orchestration and error boundary.

This package is the outermost layer of the application.  It may import
from ``core``, ``infra`` and ``workflows``, but no other layer may
import from ``cli``.
"""
