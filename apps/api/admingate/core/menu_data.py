"""
Menu data loader.

Reads the YAML tree of console menus that is seeded at boot when
``MENU_ENABLE`` is set:

    - name: System
      icon: setting
      sequence: 10
      children:
        - name: Domains
          router: /system/domains
          actions:
            - code: add
              name: Add

Menus are matched by name under their parent, actions by code within
their menu.
"""

import os
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from admingate.core.errors import DecodeFailure, ReadFailure, UnsupportedFormat

MENU_DATA_EXTENSIONS = (".yaml", ".yml")


class MenuActionSeed(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    code: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=100)


class MenuSeed(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1, max_length=50)
    sequence: int = 0
    icon: Optional[str] = Field(None, max_length=255)
    router: Optional[str] = Field(None, max_length=255)
    memo: Optional[str] = Field(None, max_length=1024)
    actions: list[MenuActionSeed] = Field(default_factory=list)
    children: list["MenuSeed"] = Field(default_factory=list)


_MENU_TREE = TypeAdapter(list[MenuSeed])


def load_menu_data(path: str) -> list[MenuSeed]:
    """
    Parse a menu data file.

    Raises:
        UnsupportedFormat: the file is not YAML
        ReadFailure: the file cannot be read
        DecodeFailure: the content is malformed or has the wrong shape
    """
    extension = os.path.splitext(path)[1].lower()
    if extension not in MENU_DATA_EXTENSIONS:
        raise UnsupportedFormat(f"not supported extension {extension or '(none)'}: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as exc:
        raise ReadFailure(f"cannot read {path}: {exc}") from exc
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise DecodeFailure(f"cannot decode {path}: {exc}") from exc

    if document is None:
        return []
    try:
        return _MENU_TREE.validate_python(document)
    except ValidationError as exc:
        raise DecodeFailure(f"invalid menu data {path}: {exc}") from exc
