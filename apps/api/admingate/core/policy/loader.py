"""
Default policy bootstrap loader.

Reads the declarative policy file that seeds the policy store on first
boot. The file holds three arrays of tables:

    [[creator_object]]
    name = "/api/v1/domains"
    type = "api"
    description = "Domain management"

    [[creator_role]]
    name = "admin"
    description = "Administrators"

    [[creator_policy]]
    object = "/api/v1/domains"
    role = "admin"
    action = ["GET", "POST"]

Loading is pure: no store access, no cross-reference validation.
"""

import os
import tomllib
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from admingate.core.errors import DecodeFailure, ReadFailure, UnsupportedFormat


class CreatorObject(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    type: str = ""
    description: str = ""


class CreatorRole(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    description: str = ""


class CreatorPolicy(BaseModel):
    """Grant of each listed action on ``object`` to ``role``."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    object: str
    role: str
    action: list[str] = Field(default_factory=list)


class DefaultPolicy(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    creator_object: list[CreatorObject] = Field(default_factory=list)
    creator_role: list[CreatorRole] = Field(default_factory=list)
    creator_policy: list[CreatorPolicy] = Field(default_factory=list)

    def get_creator_objects(self) -> list[CreatorObject]:
        return list(self.creator_object)

    def get_creator_roles(self) -> list[CreatorRole]:
        return list(self.creator_role)

    def get_creator_policies(self) -> list[CreatorPolicy]:
        return list(self.creator_policy)


def _decode_toml(raw: bytes) -> dict[str, Any]:
    return tomllib.loads(raw.decode("utf-8"))


# Extension -> decoder. Only registered formats are accepted.
DECODERS: dict[str, Callable[[bytes], dict[str, Any]]] = {
    ".toml": _decode_toml,
}


def load_default_policy(path: str) -> DefaultPolicy:
    """
    Parse a default policy file.

    Raises:
        UnsupportedFormat: the extension has no registered decoder
        ReadFailure: the file cannot be read
        DecodeFailure: the content is malformed or has the wrong shape
    """
    extension = os.path.splitext(path)[1].lower()
    decoder = DECODERS.get(extension)
    if decoder is None:
        raise UnsupportedFormat(f"not supported extension {extension or '(none)'}: {path}")

    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as exc:
        raise ReadFailure(f"cannot read {path}: {exc}") from exc

    try:
        document = decoder(raw)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise DecodeFailure(f"cannot decode {path}: {exc}") from exc

    try:
        return DefaultPolicy.model_validate(document)
    except ValidationError as exc:
        raise DecodeFailure(f"invalid policy document {path}: {exc}") from exc
