"""Security utilities for response hardening and deployment checks."""

from pathlib import Path
from typing import Any, Dict, Optional
from loguru import logger

from archive.config import ArchiveSettings


# Verification pages are standalone documents: inline styles plus the icon font CDN
VERIFY_PAGE_CSP = (
    "default-src 'self'; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "font-src 'self' https://cdn.jsdelivr.net"
)

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def validate_environment_security(settings: ArchiveSettings) -> Dict[str, Any]:
    """Check the deployment settings before the API starts serving.

    Args:
        settings: Active archive settings

    Returns:
        ``{"valid": bool, "errors": [...], "warnings": [...]}``; the app
        refuses to start when ``valid`` is False
    """
    warnings = []
    errors = []

    if "*" in settings.cors_origins:
        warnings.append("CORS_ORIGINS allows every origin (*)")
    elif not settings.cors_origins:
        warnings.append("CORS_ORIGINS is empty; browser clients will be refused")

    if not settings.tls_enabled:
        warnings.append("TLS is disabled; serve verification links over HTTPS in production")

    if settings.log_level == "DEBUG":
        warnings.append("LOG_LEVEL=DEBUG logs every store operation")

    if not settings.reject_non_array_payloads:
        warnings.append(
            "Non-array collection payloads are stored as empty collections "
            "(set REJECT_NON_ARRAY_PAYLOADS=true to reject them)."
        )

    if settings.status_segments <= 0 or settings.status_segment_seconds <= 0:
        errors.append("STATUS_SEGMENTS and STATUS_SEGMENT_SECONDS must be positive")

    if settings.max_payload_mb <= 0:
        errors.append("MAX_PAYLOAD_MB must be positive")

    return {"valid": not errors, "errors": errors, "warnings": warnings}


def get_security_headers(path: str = "") -> Dict[str, str]:
    """Headers added to every response.

    Args:
        path: Request path; verification pages get a relaxed CSP

    Returns:
        Header name to value
    """
    csp = VERIFY_PAGE_CSP if path.startswith("/api/verify/") else "default-src 'self'"
    return {**BASE_HEADERS, "Content-Security-Policy": csp}


def get_tls_config(settings: ArchiveSettings) -> Optional[Dict[str, str]]:
    """uvicorn TLS arguments, or None when TLS is off or misconfigured."""
    if not settings.tls_enabled:
        return None

    if not settings.tls_cert_path or not settings.tls_key_path:
        logger.warning("TLS_ENABLED is set without TLS_CERT_PATH and TLS_KEY_PATH")
        return None

    for label, path in (("certificate", settings.tls_cert_path), ("key", settings.tls_key_path)):
        if not Path(path).is_file():
            logger.error(f"TLS {label} not found: {path}")
            return None

    return {"certfile": settings.tls_cert_path, "keyfile": settings.tls_key_path}
