from __future__ import annotations

import os

from fastapi import Request


class Storage:
    def save_bytes(self, data: bytes, *, name: str, content_type: str | None = None) -> str:
        """Store ``data`` under ``name`` and return its public URL."""
        raise NotImplementedError


class LocalStorage(Storage):
    def __init__(self, base_dir: str, public_base: str = "/uploads") -> None:
        self.base_dir = base_dir
        self.public_base = public_base.rstrip("/")
        os.makedirs(self.base_dir, exist_ok=True)

    def save_bytes(self, data: bytes, *, name: str, content_type: str | None = None) -> str:
        safe_name = os.path.basename(name.replace("\\", "/"))
        if not safe_name or safe_name in {".", ".."}:
            raise ValueError("invalid file name")
        path = os.path.join(self.base_dir, safe_name)
        with open(path, "wb") as f:
            f.write(data)
        return f"{self.public_base}/{safe_name}"


def get_storage(request: Request) -> Storage:
    return request.app.state.storage
