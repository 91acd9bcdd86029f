from collections import defaultdict
from typing import Dict, List, Set, Tuple

from .models import Frame

Ranking = List[Tuple[str, int]]


def _ranked(table: Dict[str, int]) -> Ranking:
    # sorted() é estável e o dict preserva inserção: empates ficam na ordem
    # em que a chave apareceu pela primeira vez
    return sorted(table.items(), key=lambda x: x[1], reverse=True)


class TrafficStats:
    """Agrega estatísticas da sessão a partir da sequência de Frames."""

    def __init__(self) -> None:
        self.devices: Set[str] = set()
        self.flows: Set[Tuple[str, str]] = set()
        self.by_destination: Dict[str, int] = defaultdict(int)
        self.by_source: Dict[str, int] = defaultdict(int)
        self.bytes_by_source: Dict[str, int] = defaultdict(int)
        self.domains: Dict[str, int] = defaultdict(int)
        self.series: List[Tuple[float, int]] = []
        self.total_frames = 0
        self.total_bytes = 0
        self._last_ts = 0.0

    def ingest(self, frame: Frame) -> None:
        src, dst = frame.src_ip, frame.dst_ip
        self.total_frames += 1

        if src is not None:
            self.devices.add(src)
            self.by_source[src] += 1
            self.bytes_by_source[src] += frame.length_bytes
        if dst is not None:
            self.devices.add(dst)
            self.by_destination[dst] += 1
        if src is not None and dst is not None:
            self.flows.add((src, dst))
        if frame.dns_query_name is not None:
            self.domains[frame.dns_query_name] += 1

        # Série cumulativa: um ponto por quadro, tempo nunca retrocede
        self.total_bytes += frame.length_bytes
        ts = max(self._last_ts, frame.relative_timestamp)
        self._last_ts = ts
        self.series.append((ts, self.total_bytes))

    def device_list(self) -> List[str]:
        return sorted(self.devices)

    def flow_list(self) -> List[Tuple[str, str]]:
        return sorted(self.flows)

    def most_visited(self) -> Ranking:
        return _ranked(self.by_destination)

    def most_requesting(self) -> Ranking:
        return _ranked(self.by_source)

    def largest_senders(self) -> Ranking:
        return _ranked(self.bytes_by_source)

    def top_domains(self) -> Ranking:
        return _ranked(self.domains)

    def snapshot(self) -> Dict:
        # Lido pela thread da UI: apenas contadores, sem iterar os dicts
        return {
            'frames': self.total_frames,
            'bytes': self.total_bytes,
            'devices': len(self.devices),
        }
