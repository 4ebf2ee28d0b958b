"""GPPS protocol constants.

Single source of truth for the lock sentinel, id bounds and row accounting.
Keep this file stable. Writers, snapshots and verifiers must agree on it.
"""

# Immutability latch: node 0 holding exactly these two bytes freezes a scope
LOCK_NODE_ID = 0
LOCK_SENTINEL = b"\xde\xad"

# Node ids are unsigned 64-bit
MIN_NODE_ID = 0
MAX_NODE_ID = 2**64 - 1

# Recommended node payload; larger files are split over a contiguous id range
DEFAULT_CHUNK_SIZE = 8 * 1024  # 8 KiB

# RAM billing per row: fixed table-row overhead plus serialized row
ROW_OVERHEAD_BYTES = 112
ID_FIELD_BYTES = 8

# Signed action envelopes
ACTION_SET = "set"
ACTION_DEL = "del"
ACTIONS = (ACTION_SET, ACTION_DEL)
