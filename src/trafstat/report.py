import csv
import logging
import os
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .stats import TrafficStats

logger = logging.getLogger(__name__)


@dataclass
class Table:
    title: str
    filename: str
    header: Tuple[str, ...]
    rows: List[Tuple] = field(default_factory=list)
    ranked: bool = False  # tabelas de contagem usam alinhamento no log


@dataclass
class Report:
    summary_text: str
    tables: List[Table]

    def table(self, filename: str) -> Table:
        for t in self.tables:
            if t.filename == filename:
                return t
        raise KeyError(filename)


def build_tables(stats: TrafficStats) -> List[Table]:
    return [
        Table('List of Devices in the Network:', 'list_of_devices.csv',
              ('IP Address',), [(ip,) for ip in stats.device_list()]),
        Table('List of All Visited IPs by All Users in Network:', 'all_visited_ips.csv',
              ('Source IP', 'Destination IP'), stats.flow_list()),
        Table('List of Most Visited IPs:', 'most_visited_ips.csv',
              ('IP Address', 'Count'), stats.most_visited(), ranked=True),
        Table('List of Most Requesting Network Devices:', 'most_requesting_devices.csv',
              ('IP Address', 'Count'), stats.most_requesting(), ranked=True),
        Table('List of Data Packet Sizes from Most to Least Sorted by Device:', 'data_packet_sizes.csv',
              ('IP Address', 'Total Bytes'), stats.largest_senders()),
        Table('URLs Visited by Devices:', 'urls_visited.csv',
              ('Domain', 'Count'), stats.top_domains()),
    ]


def _format_row(row: Sequence, ranked: bool) -> str:
    if ranked:
        return f"{row[0]:<15} {row[1]}"
    return ','.join(str(v) for v in row)


def render(stats: TrafficStats, skipped: int = 0) -> Report:
    """Monta o texto do resumo e as tabelas exportáveis a partir dos agregados."""
    tables = build_tables(stats)
    lines: List[str] = ['Network Traffic Summary:']
    for t in tables:
        lines.append('')
        lines.append(t.title)
        lines.extend(_format_row(r, t.ranked) for r in t.rows)

    # Série temporal só vai para o log (e gráfico), não para CSV
    lines.append('')
    lines.append('Traffic Volume by Time:')
    lines.extend(f"{ts:.1f},{total}" for ts, total in stats.series)

    lines.append('')
    lines.append('Capture Totals:')
    lines.append(f"Frames analyzed: {stats.total_frames}")
    lines.append(f"Total bytes: {stats.total_bytes}")
    lines.append(f"Malformed frames skipped: {skipped}")
    return Report(summary_text='\n'.join(lines) + '\n', tables=tables)


def write_table(path: str, table: Table) -> None:
    with open(path, 'w', newline='', encoding='utf-8') as fh:
        writer = csv.writer(fh)
        writer.writerow(table.header)
        writer.writerows(table.rows)


def write_report(report: Report, log_path: str, output_dir: str) -> List[str]:
    """Grava o log de resumo e um CSV por tabela. Retorna os caminhos gravados."""
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    os.makedirs(output_dir, exist_ok=True)

    with open(log_path, 'w', encoding='utf-8') as fh:
        fh.write(report.summary_text)
    written = [log_path]
    for t in report.tables:
        path = os.path.join(output_dir, t.filename)
        write_table(path, t)
        written.append(path)
    logger.debug("wrote %d report files", len(written))
    return written
