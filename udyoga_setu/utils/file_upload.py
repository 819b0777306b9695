"""
File Upload Utility - Validate and read uploaded files.

Resume uploads (QR handoff):
- PDF (.pdf)
- Word (.doc, .docx)

Voice recordings (voice applications):
- webm, ogg, wav, mp3, m4a

Max file size comes from settings (5MB by default).
"""

from typing import Tuple
from fastapi import UploadFile, HTTPException

from udyoga_setu.core.config import get_settings

settings = get_settings()

RESUME_CONTENT_TYPES = {
    '.pdf': 'application/pdf',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
}

AUDIO_CONTENT_TYPES = {
    '.webm': 'audio/webm',
    '.ogg': 'audio/ogg',
    '.wav': 'audio/wav',
    '.mp3': 'audio/mpeg',
    '.m4a': 'audio/mp4',
}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def read_validated_file(file: UploadFile, allowed: dict, kind: str) -> Tuple[bytes, str, str]:
    """
    Read an uploaded file after checking its name, type and size.

    Args:
        file: FastAPI UploadFile
        allowed: extension -> canonical content type
        kind: human readable name used in error messages

    Returns:
        Tuple of (content, filename, content_type)

    Raises:
        HTTPException on validation errors
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in allowed:
        names = ", ".join(e.lstrip('.').upper() for e in allowed)
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported {kind} type '{ext}'. Allowed: {names}"
        )

    content = await file.read()

    if len(content) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {settings.max_upload_size_mb}MB"
        )

    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    return content, file.filename, allowed[ext]


async def read_resume_file(file: UploadFile) -> Tuple[bytes, str, str]:
    return await read_validated_file(file, RESUME_CONTENT_TYPES, "file")


async def read_audio_file(file: UploadFile) -> Tuple[bytes, str, str]:
    return await read_validated_file(file, AUDIO_CONTENT_TYPES, "audio")


def get_supported_formats() -> dict:
    """Get info about supported resume formats."""
    return {
        "supported_formats": [
            {"extension": ".pdf", "name": "PDF"},
            {"extension": ".doc", "name": "Word Document"},
            {"extension": ".docx", "name": "Word Document"}
        ],
        "max_size_mb": settings.max_upload_size_mb
    }
