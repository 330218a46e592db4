from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import threading
from typing import Callable, Optional, Union

from mesh_brute.portnums import portnum_label

MAX_DEPTH = 4
DEFAULT_CHUNK_SIZE = 1000
U32_MAX = 0xFFFFFFFF


class InvalidSearchConfig(ValueError):
    pass


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def __str__(self):
        return self.value


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Structural verdict for one decryption attempt."""

    valid: bool
    confidence: Confidence = Confidence.LOW
    portnum: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Extraction:
    portnum: Optional[int] = None
    payload: Optional[bytes] = None


@dataclass(frozen=True, slots=True)
class SearchProgress:
    """Progress snapshot handed out at chunk boundaries."""

    current: int
    total: int
    keys_per_second: int = 0

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return self.current / self.total * 100


@dataclass(frozen=True, slots=True)
class SearchResult:
    key: bytes
    key_hex: str
    decrypted: bytes
    portnum: Optional[int]
    payload: Union[str, bytes, None]
    confidence: Confidence

    @property
    def portnum_label(self) -> Optional[str]:
        if self.portnum is None:
            return None
        return portnum_label(self.portnum)


ProgressFn = Callable[[SearchProgress], None]


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Inputs for one key search. Read-only once built."""

    ciphertext: bytes
    packet_id: int
    from_node: int
    depth: int
    chunk_size: int = DEFAULT_CHUNK_SIZE
    progress_callback: Optional[ProgressFn] = field(default=None, compare=False)
    cancel: Optional[threading.Event] = field(default=None, compare=False)
    simple_psk: bool = False

    def __post_init__(self):
        object.__setattr__(self, "ciphertext", bytes(self.ciphertext))

        if not 1 <= self.depth <= MAX_DEPTH:
            raise InvalidSearchConfig(f"depth must be between 1 and {MAX_DEPTH}, got {self.depth}")
        if self.chunk_size < 1:
            raise InvalidSearchConfig(f"chunk_size must be positive, got {self.chunk_size}")
        for name in ("packet_id", "from_node"):
            value = getattr(self, name)
            if not 0 <= value <= U32_MAX:
                raise InvalidSearchConfig(f"{name} must fit in 32 bits, got {value}")

    @property
    def total(self) -> int:
        return 256 ** self.depth

    @property
    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()
