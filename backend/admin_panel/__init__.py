"""Upload admin panel backend: file uploads with a JSON upload log, plus image scroll blocks."""
