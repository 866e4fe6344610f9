"""
File Tools Backend - REST API for file conversion and document processing

This package provides a FastAPI-based web service that exposes a closed
catalog of file tools (PDF, image, video, spreadsheet, text, developer,
converter, OCR and AI writing) behind one uniform REST surface. It handles:

- Tool catalog listing and localized tool descriptors
- Multipart upload intake with per-file size ceilings
- Declarative option coercion against each tool's option schema
- Synchronous dispatch to the processing routine for a tool
- Time-based eviction of generated artifacts
- Download of artifacts with the right media type

Key Components:
    - main: FastAPI application and HTTP endpoint definitions
    - dispatch: Tool router tying registry, handlers, intake and lifecycle together
    - registry: Catalog loading and localization
    - options: Coercion of raw form values into typed option values
    - storage: Upload intake and output directory layout
    - lifecycle: Scheduled deletion of generated artifacts
    - tools / processors: Per-family handler records and processing routines
    - configuration: Config loading and merging logic
    - utils: Filesystem, naming and size-formatting helpers

Usage:
    Run the API server with:
        uvicorn filetools_backend.main:app --reload --host 0.0.0.0 --port 8000
"""
