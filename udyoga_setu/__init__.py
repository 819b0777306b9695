"""
Udyoga Setu
Job applications by QR resume upload or voice recording.

Architecture:
- PostgreSQL: Structured data (companies, jobs, applications, uploads, kiosks)
- MongoDB GridFS: Blobs (resumes, videos, voice recordings)
- In-process change feed: realtime dashboard updates over WebSocket
"""

__version__ = "1.0.0"
