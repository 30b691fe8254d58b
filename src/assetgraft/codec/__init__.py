"""Package codecs: the storage contract and the JSON rendering."""

from assetgraft.codec.base import (
    DEFAULT_PAYLOAD_EXTENSION,
    AssetCodec,
    CodecError,
    CodecParseError,
    CodecWriteError,
    InputNotFoundError,
    payload_path,
)
from assetgraft.codec.json_codec import JsonPackageCodec

__all__ = [
    "DEFAULT_PAYLOAD_EXTENSION",
    "AssetCodec",
    "CodecError",
    "CodecParseError",
    "CodecWriteError",
    "InputNotFoundError",
    "JsonPackageCodec",
    "payload_path",
]
