"""
Persistence adapters for KPiece.

- codec: EconomyState <-> save document (browser-compatible field names)
- store: async save stores (memory, file, redis) and bootstrap helpers
"""

from .codec import decode_character, decode_state, encode_character, encode_state
from .store import (
    FileSaveStore,
    MemorySaveStore,
    RedisSaveStore,
    SaveStore,
    build_save_store,
    load_or_create_state,
)

__all__ = [
    "encode_state",
    "decode_state",
    "encode_character",
    "decode_character",
    "SaveStore",
    "MemorySaveStore",
    "FileSaveStore",
    "RedisSaveStore",
    "build_save_store",
    "load_or_create_state",
]
