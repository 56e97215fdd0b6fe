from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from google.oauth2 import service_account


def load_service_account_credentials(
    credentials_path: str,
    scopes: Sequence[str],
    service_label: str,
) -> service_account.Credentials:
    """Service-account credentials for one Google API, with readable setup errors."""
    if not credentials_path:
        raise RuntimeError(f"{service_label} credentials path is missing.")
    path = Path(credentials_path)
    if not path.exists():
        raise RuntimeError(f"{service_label} credentials file not found: {credentials_path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RuntimeError(
            f"Invalid JSON in {service_label} credentials file: {credentials_path}"
        ) from exc
    if not isinstance(payload, dict) or payload.get("type") != "service_account":
        raise RuntimeError(
            f"{service_label} expects service-account credentials "
            "(JSON with type=service_account)."
        )
    return service_account.Credentials.from_service_account_file(
        str(path),
        scopes=list(scopes),
    )
