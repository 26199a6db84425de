"""Adapters turning encoded input material into typed handles."""

from pkcs7cryptographer.adapters.material import (
    DefaultMaterialLoader,
    MaterialLoader,
    armor_pkcs7,
    unarmor,
)

__all__ = ["DefaultMaterialLoader", "MaterialLoader", "armor_pkcs7", "unarmor"]
