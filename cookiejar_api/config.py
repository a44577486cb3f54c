"""Environment-driven configuration for the cookie jar service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_DIRNAME = ".cookiejar"
DEFAULT_FILENAME = "cookies.json"


def default_jar_path() -> Path:
    return Path.home() / DEFAULT_DIRNAME / DEFAULT_FILENAME


@dataclass(slots=True)
class JarConfig:
    path: Path
    max_save_attempts: Optional[int] = None
    verify: bool | str = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "JarConfig":
        env = os.environ if environ is None else environ

        path = Path(env["COOKIEJAR_PATH"]).expanduser() if env.get("COOKIEJAR_PATH") else default_jar_path()

        max_attempts: Optional[int] = None
        raw_attempts = env.get("COOKIEJAR_MAX_SAVE_ATTEMPTS")
        if raw_attempts:
            try:
                max_attempts = int(raw_attempts)
            except ValueError as exc:
                raise ValueError(f"COOKIEJAR_MAX_SAVE_ATTEMPTS must be an integer, got {raw_attempts!r}") from exc
            if max_attempts < 1:
                raise ValueError("COOKIEJAR_MAX_SAVE_ATTEMPTS must be positive")

        verify: bool | str = True
        if env.get("COOKIEJAR_SSL_NO_VERIFY") == "1":
            verify = False
        else:
            ca_bundle = env.get("COOKIEJAR_CA_BUNDLE")
            if ca_bundle:
                verify = ca_bundle
            else:
                default_bundle = path.parent / "ca-bundle.pem"
                if default_bundle.exists():
                    verify = str(default_bundle)

        log_level = env.get("COOKIEJAR_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"COOKIEJAR_LOG_LEVEL is not a logging level: {log_level!r}")

        return cls(path=path, max_save_attempts=max_attempts, verify=verify, log_level=log_level)
