"""Cloud provider identifiers and the shape of their stored credentials."""
from __future__ import annotations

from typing import Any, Literal, Mapping

Provider = Literal["aws", "azure", "gcp"]

PROVIDERS: tuple[Provider, ...] = ("aws", "azure", "gcp")

# Keys every decrypted credential document must carry (non-empty strings)
REQUIRED_FIELDS: dict[Provider, tuple[str, ...]] = {
    "aws": ("accessKeyId", "secretAccessKey"),
    "azure": ("subscriptionId", "clientId", "clientSecret", "tenantId"),
    "gcp": ("projectId", "serviceAccountEmail", "privateKey"),
}


def validate_provider(provider: str) -> Provider:
    if provider not in PROVIDERS:
        raise ValueError(
            f"Unknown provider '{provider}'. Expected one of: {', '.join(PROVIDERS)}"
        )
    return provider  # type: ignore[return-value]


def missing_fields(provider: Provider, document: Any) -> list[str]:
    """Return the required fields absent from ``document`` (all of them if not a mapping)."""
    required = REQUIRED_FIELDS[provider]
    if not isinstance(document, Mapping):
        return list(required)
    return [
        name
        for name in required
        if not isinstance(document.get(name), str) or not document[name].strip()
    ]
