"""
catscii — Cat Pictures as ASCII-Art HTML
=========================================

What: Marks the `catscii` directory as a Python package.
Who:  Imported by uvicorn (via the `catscii` console script), pytest, and the
      modules below.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Pipeline Orchestration) │  ← fetch → decode → convert
    ├─────────────────────────────────────┤
    │  Image Source / ASCII Collaborators │  ← outbound HTTP, Pillow, ascii_magic
    ├─────────────────────────────────────┤
    │        Observability Shell          │  ← logging, Sentry, OpenTelemetry
    └─────────────────────────────────────┘

    Nothing is persisted; every request does a fresh fetch and conversion.
"""

__version__ = "1.0.0"
