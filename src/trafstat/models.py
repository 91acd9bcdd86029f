from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RawFrame:
    """Quadro como entregue pela fonte de captura."""

    data: bytes
    timestamp: float  # relativo ao primeiro quadro da sessão
    wire_length: int
    linktype: Optional[int] = None


@dataclass(frozen=True)
class Frame:
    """Quadro reduzido aos campos usados na agregação."""

    relative_timestamp: float
    length_bytes: int
    src_ip: Optional[str] = None
    dst_ip: Optional[str] = None
    dns_query_name: Optional[str] = None
