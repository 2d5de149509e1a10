"""Asset value type for Theme Sync.

An asset is one theme file: its project-relative key plus either a text
``value`` or a base64 ``attachment`` for binary content.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import os
from dataclasses import dataclass
from typing import Any

from theme_sync.errors import EncodingError, MalformedContentError


@dataclass(frozen=True)
class Asset:
    """A single theme file.

    Parameters
    ----------
    key : str
        Path of the file relative to the project root, using ``/``.
    value : str
        Text content, for files that decode as UTF-8.
    attachment : str
        Base64-encoded content, for binary files.
    """

    key: str = ""
    value: str = ""
    attachment: str = ""

    def is_valid(self) -> bool:
        """Return True when the asset has a key and some content."""
        return bool(self.key) and (bool(self.value) or bool(self.attachment))

    def size(self) -> int:
        """Return the byte length of the populated payload (undecoded)."""
        if self.value:
            return len(self.value.encode("utf-8"))
        return len(self.attachment)

    def contents(self) -> bytes:
        """Return the asset's bytes.

        The attachment is base64-decoded when present. Otherwise the value
        is used, re-serialised with two-space indentation for ``.json`` keys.

        Raises
        ------
        EncodingError
            If the attachment is not valid base64.
        MalformedContentError
            If a ``.json`` value cannot be parsed.
        """
        if self.attachment:
            try:
                return base64.b64decode(self.attachment, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise EncodingError(
                    f"Attachment for '{self.key}' is not valid base64: {exc}"
                ) from exc

        if self.key.endswith(".json"):
            try:
                parsed = json.loads(self.value)
            except json.JSONDecodeError as exc:
                raise MalformedContentError(
                    f"Could not parse '{self.key}' as JSON: {exc}"
                ) from exc
            return json.dumps(parsed, indent=2, ensure_ascii=False).encode("utf-8")

        return self.value.encode("utf-8")

    def checksum(self) -> str:
        """Return the hex MD5 digest of :meth:`contents`."""
        return hashlib.md5(self.contents()).hexdigest()

    def write(self, base_path: str) -> None:
        """Write the asset's contents to ``base_path/key``.

        Parent directories are not created; a missing directory raises
        the underlying ``OSError``.
        """
        data = self.contents()
        target = os.path.join(base_path, *self.key.split("/"))
        with open(target, "wb") as fh:
            fh.write(data)

    # ---- wire form ----

    def to_dict(self) -> dict[str, str]:
        """Return the asset as a dict, omitting empty fields."""
        data = {"key": self.key}
        if self.value:
            data["value"] = self.value
        if self.attachment:
            data["attachment"] = self.attachment
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        """Build an asset from its wire form, ignoring unknown fields."""
        return cls(
            key=data.get("key") or "",
            value=data.get("value") or "",
            attachment=data.get("attachment") or "",
        )
