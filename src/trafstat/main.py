import argparse
import logging
import signal
import sys
from typing import Optional

from . import ui
from .config import DEFAULT_OUTPUT_DIR, DEFAULT_OUTPUT_LOG, MonitorConfig, default_interface
from .log import parse_level, setup_logger
from .session import CaptureSession

logger = logging.getLogger('trafstat')


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='trafstat', description='Network traffic statistics (devices, top talkers, DNS, volume)')
    src = p.add_mutually_exclusive_group()
    src.add_argument('-i', '--interface', default=default_interface(),
                     help='Capture interface (default: $TRAFSTAT_INTERFACE or en0)')
    src.add_argument('-r', '--read-file', metavar='FILE', help='Read packets from a pcap/pcapng file instead of an interface')
    p.add_argument('-f', '--filter', metavar='BPF', help="BPF capture filter (e.g. 'udp port 53')")
    p.add_argument('-d', '--duration', type=float, metavar='SECONDS', help='Stop after this many seconds (default: until Ctrl+C)')
    p.add_argument('-c', '--count', type=int, metavar='N', help='Stop after N packets')
    p.add_argument('-o', '--output-dir', default=DEFAULT_OUTPUT_DIR, help='Directory for CSV files (default: output)')
    p.add_argument('--log', default=DEFAULT_OUTPUT_LOG, help='Summary log file (default: stats.log)')
    p.add_argument('--no-chart', action='store_true', help='Do not render the traffic volume chart')
    p.add_argument('--chart-file', help='Chart image path (default: <output-dir>/traffic_volume.png)')
    p.add_argument('--probe-timeout', type=float, default=3.0, metavar='SECONDS',
                   help='How long to wait for traffic before giving up (default: 3)')
    p.add_argument('--write-pcap', metavar='FILE', help='Also save the captured packets to FILE')
    p.add_argument('--no-progress', action='store_true', help='Disable the progress indicator')
    p.add_argument('--no-banner', action='store_true', help='Do not print the start-up banner')
    p.add_argument('-v', '--verbose', action='store_true', help='Shortcut for --log-level DEBUG')
    p.add_argument('--log-level', default='INFO', help='Diagnostic log level (default: INFO)')
    p.add_argument('--log-file', help='Also write diagnostic messages to this file')
    return p


def _validate_args(p: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.duration is not None and args.duration <= 0:
        p.error('--duration must be positive')
    if args.count is not None and args.count <= 0:
        p.error('--count must be positive')
    if args.probe_timeout <= 0:
        p.error('--probe-timeout must be positive')
    try:
        args.log_level = parse_level('DEBUG' if args.verbose else args.log_level)
    except ValueError as e:
        p.error(str(e))


def main(argv: Optional[list] = None) -> int:
    parser = build_argparser()
    args = parser.parse_args(argv)
    _validate_args(parser, args)
    setup_logger(log_file=args.log_file, level=args.log_level)

    config = MonitorConfig.from_args(args)
    if not args.no_banner:
        ui.print_banner()

    session = CaptureSession(config)

    def handle_signal(_sig, _frm):
        # Primeiro sinal encerra a captura e gera o relatório; o segundo aborta
        if session.stopping:
            raise KeyboardInterrupt
        session.stop()

    previous = {sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        outcome = session.run()
    except KeyboardInterrupt:
        logger.error("Aborted.")
        return 130
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if outcome.ok and config.output_log in outcome.written:
        print(f"Analysis complete. Results saved to {config.output_log} and CSV files "
              f"in the '{config.output_dir}' directory.")
        if outcome.chart_path:
            print(f"Chart saved to {outcome.chart_path}")
    return outcome.exit_code


if __name__ == '__main__':
    raise SystemExit(main())
