# === NAVMAP v1 ===
# {
#   "module": "HopHTTP.network.policy",
#   "purpose": "HTTP policy constants and defaults.",
#   "sections": []
# }
# === /NAVMAP ===

"""HTTP policy constants and defaults.

Fixed protocol-level values used by the connection, pipeline, and iterator
layers.  Tunable values (timeouts, redirect limits, pooling) live in
:mod:`HopHTTP.settings` instead.
"""

# ============================================================================
# Transport
# ============================================================================

#: URL schemes the transport can open; anything else is a configuration error
SUPPORTED_SCHEMES = frozenset({"http", "https"})

#: Automatic redirect following at the transport level; always off because
#: redirects are resolved hop by hop by the response chain
FOLLOW_REDIRECTS = False


# ============================================================================
# Request bodies
# ============================================================================

#: Size of each chunk when streaming a file or byte-stream request body
STREAM_UPLOAD_CHUNK_BYTES = 4096


# ============================================================================
# Response bodies
# ============================================================================

#: Content-Encoding values decoded transparently (compared case-insensitively)
GZIP_ENCODING = "gzip"
DEFLATE_ENCODING = "deflate"

#: Charset used when neither an override nor a Content-Type charset applies
DEFAULT_CHARSET = "utf-8"

#: Default chunk size for ``Response.iter_content``
DEFAULT_CONTENT_CHUNK_SIZE = 1

#: Default chunk size and delimiter for ``Response.iter_lines``
DEFAULT_LINE_CHUNK_SIZE = 512
DEFAULT_LINE_DELIMITER = r"\r?\n"


__all__ = [
    "SUPPORTED_SCHEMES",
    "FOLLOW_REDIRECTS",
    "STREAM_UPLOAD_CHUNK_BYTES",
    "GZIP_ENCODING",
    "DEFLATE_ENCODING",
    "DEFAULT_CHARSET",
    "DEFAULT_CONTENT_CHUNK_SIZE",
    "DEFAULT_LINE_CHUNK_SIZE",
    "DEFAULT_LINE_DELIMITER",
]
