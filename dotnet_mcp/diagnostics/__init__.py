"""Diagnostics: secret redaction, error classification, and result envelopes.

Submodules are imported directly (``dotnet_mcp.diagnostics.classifier``,
``dotnet_mcp.diagnostics.factory``, ...). The package itself stays empty so
that ``dotnet_mcp.logging`` can import the redactor without a cycle.
"""
