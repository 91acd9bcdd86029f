import argparse
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_INTERFACE = 'en0'
DEFAULT_OUTPUT_LOG = 'stats.log'
DEFAULT_OUTPUT_DIR = 'output'
CHART_FILENAME = 'traffic_volume.png'


def default_interface() -> str:
    return os.environ.get('TRAFSTAT_INTERFACE') or DEFAULT_INTERFACE


@dataclass
class MonitorConfig:
    """Parâmetros de uma sessão de captura."""

    interface: str = DEFAULT_INTERFACE
    capture_file: Optional[str] = None
    bpf_filter: Optional[str] = None
    duration: Optional[float] = None  # segundos; None = até interrupção
    packet_limit: Optional[int] = None
    output_log: str = DEFAULT_OUTPUT_LOG
    output_dir: str = DEFAULT_OUTPUT_DIR
    charts: bool = True
    chart_file: Optional[str] = None
    probe_timeout: float = 3.0
    write_pcap: Optional[str] = None
    progress: bool = True

    @property
    def source_name(self) -> str:
        # Nome exibido em mensagens de erro: arquivo tem precedência sobre interface
        return self.capture_file or self.interface

    @property
    def chart_path(self) -> str:
        return self.chart_file or os.path.join(self.output_dir, CHART_FILENAME)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'MonitorConfig':
        return cls(
            interface=args.interface,
            capture_file=args.read_file,
            bpf_filter=args.filter or None,
            duration=args.duration,
            packet_limit=args.count,
            output_log=args.log,
            output_dir=args.output_dir,
            charts=not args.no_chart,
            chart_file=args.chart_file,
            probe_timeout=args.probe_timeout,
            write_pcap=args.write_pcap,
            progress=not args.no_progress,
        )
