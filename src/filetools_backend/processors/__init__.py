"""
Processing routines, one module per file family.

Routines are plain functions over paths and typed arguments. They know
nothing about HTTP, catalogs or option coercion; the handler records in
``filetools_backend.tools`` adapt requests to them.
"""


class EmptyDocumentError(ValueError):
    """The source document has no content to convert."""
