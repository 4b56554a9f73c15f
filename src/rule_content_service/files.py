"""
Static file serving used for the OpenAPI specification endpoint
"""

import os

from fastapi import HTTPException
from fastapi.responses import FileResponse

from .errors import PathResolutionError


def resolve_absolute_path(path: str) -> str:
    """
    Make a configured path absolute relative to the working directory.

    Raises:
        PathResolutionError: the path is invalid or the working directory is gone
    """
    try:
        return os.path.abspath(path)
    except (OSError, ValueError) as e:
        raise PathResolutionError(path, e) from e


def serve_file(path: str) -> FileResponse:
    """
    Serve a file with a content type guessed from its name.

    Missing files and directories yield 404, unreadable files 403.
    """
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="Not Found")
    if not os.access(path, os.R_OK):
        raise HTTPException(status_code=403, detail="Forbidden")
    return FileResponse(path)
