import enum
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from . import chart
from .capture import CaptureSource, open_source
from .config import MonitorConfig
from .decoder import decode
from .errors import CaptureValidationError, ChartUnavailable, DecodeSkip, InterfaceError
from .report import Report, render, write_report
from .stats import TrafficStats
from .ui import Ticker

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_PERMISSION = 3
EXIT_INTERFACE = 4

FATAL_ERRORS = (CaptureValidationError, PermissionError, InterfaceError)


class SessionState(enum.Enum):
    IDLE = 'idle'
    VALIDATING = 'validating'
    CAPTURING = 'capturing'
    FINALIZING = 'finalizing'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class SessionOutcome:
    state: SessionState
    error: Optional[BaseException] = None
    report: Optional[Report] = None
    chart_path: Optional[str] = None
    frames: int = 0
    skipped: int = 0
    written: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is SessionState.DONE

    @property
    def exit_code(self) -> int:
        if self.ok:
            return EXIT_OK
        if isinstance(self.error, CaptureValidationError):
            return EXIT_VALIDATION
        if isinstance(self.error, PermissionError):
            return EXIT_PERMISSION
        return EXIT_INTERFACE


class CaptureSession:
    """Uma execução completa: validação, captura, agregação e relatório.

    Estados: IDLE -> VALIDATING -> CAPTURING -> FINALIZING -> DONE, ou FAILED
    em erro fatal (validação, permissão, interface). Em erro fatal nenhum
    relatório é gerado. A limpeza (ticker, fonte, arquivos temporários) roda
    exatamente uma vez em qualquer saída.
    """

    def __init__(self, config: MonitorConfig, source: Optional[CaptureSource] = None,
                 ticker: Optional[Ticker] = None, chart_renderer: Optional[Callable] = None) -> None:
        self.config = config
        self.source = source or open_source(config)
        self.stats = TrafficStats()
        self.skipped = 0
        self.state = SessionState.IDLE
        self.ticker = ticker or Ticker(self.stats.snapshot, enabled=None if config.progress else False)
        self.chart_renderer = chart_renderer or chart.render_chart
        self._stop = threading.Event()
        self._temp_paths: List[str] = []
        self._dump_tmp: Optional[str] = None
        self._cleaned = False
        self._charts = config.charts
        self._chart_warned = False

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Pede o fim da captura (ex.: SIGINT); a sessão segue para o relatório."""
        self._stop.set()

    def run(self) -> SessionOutcome:
        try:
            self._check_chart_backend()
            try:
                self._validate()
                self._capture()
            except FATAL_ERRORS as e:
                self.state = SessionState.FAILED
                logger.error("%s", e)
                return SessionOutcome(SessionState.FAILED, error=e,
                                      frames=self.stats.total_frames, skipped=self.skipped)
            finally:
                self.ticker.stop()
            return self._finalize()
        finally:
            self.cleanup()

    def _check_chart_backend(self) -> None:
        if self._charts and self.chart_renderer is chart.render_chart and not chart.chart_available():
            self._warn_chart("matplotlib is not installed. Charts will not be generated.")
            self._charts = False

    def _warn_chart(self, message: str) -> None:
        if not self._chart_warned:
            logger.warning(message)
            self._chart_warned = True

    def _validate(self) -> None:
        self.state = SessionState.VALIDATING
        logger.info("Starting traffic capture on %s.", self.source.name)
        self.source.open()
        self.source.probe(self.config.probe_timeout)

    def _capture(self) -> None:
        self.state = SessionState.CAPTURING
        if self.config.write_pcap:
            self._start_dump(self.config.write_pcap)
        self.ticker.start()
        frames = self.source.frames(self._stop, duration=self.config.duration,
                                    packet_limit=self.config.packet_limit)
        try:
            for raw in frames:
                try:
                    frame = decode(raw)
                except DecodeSkip as e:
                    self.skipped += 1
                    logger.debug("skipping malformed frame at %.3fs: %s", raw.timestamp, e)
                    continue
                self.stats.ingest(frame)
        except KeyboardInterrupt:
            # Segunda interrupção (stop já pedido) aborta sem relatório
            if self.stopping:
                raise
            logger.info("Capture interrupted.")
        finally:
            frames.close()
        logger.info("Captured %d frames (%d malformed skipped).", self.stats.total_frames, self.skipped)

    def _start_dump(self, path: str) -> None:
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix='.trafstat-', suffix='.pcap', dir=directory)
        os.close(fd)
        self._temp_paths.append(tmp)
        self._dump_tmp = tmp
        self.source.start_dump(tmp)

    def _finalize(self) -> SessionOutcome:
        self.state = SessionState.FINALIZING
        logger.info("Analyzing captured traffic...")
        written: List[str] = []
        # Pacotes capturados vão para o destino antes de qualquer etapa que possa falhar
        if self._dump_tmp is not None:
            self._save_dump(written)

        report = render(self.stats, skipped=self.skipped)
        try:
            written.extend(write_report(report, self.config.output_log, self.config.output_dir))
        except OSError as e:
            logger.error("Could not write report files: %s", e)

        chart_path = None
        if self._charts:
            try:
                chart_path = self.chart_renderer(self.stats.series, chart.DEFAULT_TITLE,
                                                 chart.DEFAULT_X_LABEL, chart.DEFAULT_Y_LABEL,
                                                 self.config.chart_path)
            except (ChartUnavailable, OSError, ValueError, RuntimeError) as e:
                self._warn_chart(f"Skipping chart generation: {e}")
        elif self.config.charts:
            logger.info("Skipping chart generation due to missing matplotlib.")

        self.state = SessionState.DONE
        return SessionOutcome(SessionState.DONE, report=report, chart_path=chart_path,
                              frames=self.stats.total_frames, skipped=self.skipped, written=written)

    def _save_dump(self, written: List[str]) -> None:
        tmp = self._dump_tmp
        self._dump_tmp = None
        self.source.stop_dump()
        try:
            os.replace(tmp, self.config.write_pcap)
        except OSError as e:
            # Mantém o temporário para não perder a captura
            logger.error("Could not save capture to %s (%s); packets kept in %s", self.config.write_pcap, e, tmp)
        else:
            written.append(self.config.write_pcap)
        self._temp_paths.remove(tmp)

    def cleanup(self) -> None:
        """Libera recursos; idempotente e nunca levanta exceção."""
        if self._cleaned:
            return
        self._cleaned = True
        logger.debug("Cleaning up temporary files...")
        try:
            self.ticker.stop()
        except Exception as e:
            logger.warning("failed to stop progress ticker: %s", e)
        try:
            self.source.close()
        except Exception as e:
            logger.warning("failed to close capture source %s: %s", self.source.name, e)
        for path in self._temp_paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("could not remove %s: %s", path, e)
        self._temp_paths = []
