import contextlib
import logging
import os
import threading
import time
from typing import Iterator, Optional

from scapy.all import conf
from scapy.error import Scapy_Exception
from scapy.utils import PcapReader, PcapWriter, tcpdump

from .config import MonitorConfig
from .errors import CaptureValidationError, InterfaceError
from .models import RawFrame

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.2


class CaptureSource:
    """Fonte de quadros brutos: interface ao vivo ou arquivo pcap.

    Subclasses implementam _packets(), que entrega pacotes scapy na ordem de
    chegada até o fim da fonte, o prazo (deadline) ou o stop_event.
    """

    live = True

    def __init__(self, name: str, bpf_filter: Optional[str] = None) -> None:
        self.name = name
        self.bpf_filter = bpf_filter
        self._dump: Optional[PcapWriter] = None

    def open(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        self.stop_dump()

    def _packets(self, stop_event: threading.Event, deadline: Optional[float]) -> Iterator:
        raise NotImplementedError

    def __enter__(self) -> 'CaptureSource':
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def linktype_of(self, pkt) -> Optional[int]:
        return conf.l2types.layer2num.get(type(pkt))

    def start_dump(self, path: str) -> None:
        """Grava também cada quadro capturado em path (pcap)."""
        self._dump = PcapWriter(path, append=False, sync=True)

    def stop_dump(self) -> None:
        if self._dump is not None:
            try:
                self._dump.close()
            finally:
                self._dump = None

    def probe(self, timeout: float, packet_limit: int = 1) -> int:
        """
        Captura curta de validação. Os quadros são descartados; levanta
        CaptureValidationError se nada chegar dentro de timeout.
        """
        stop = threading.Event()
        deadline = time.monotonic() + timeout
        got = 0
        with contextlib.closing(self._packets(stop, deadline)) as packets:
            for _pkt in packets:
                got += 1
                if got >= packet_limit:
                    break
        if got == 0:
            raise CaptureValidationError(self.name)
        logger.debug("probe on %s captured %d frame(s)", self.name, got)
        return got

    def frames(self, stop_event: Optional[threading.Event] = None, duration: Optional[float] = None,
               packet_limit: Optional[int] = None) -> Iterator[RawFrame]:
        stop_event = stop_event or threading.Event()
        # Ao vivo a duração é tempo de relógio; em arquivo, tempo de captura
        deadline = time.monotonic() + duration if duration and self.live else None
        first_ts: Optional[float] = None
        last_rel = 0.0
        count = 0
        with contextlib.closing(self._packets(stop_event, deadline)) as packets:
            for pkt in packets:
                ts = float(pkt.time)
                if first_ts is None:
                    first_ts = ts
                # Relógio de captura pode oscilar; o tempo relativo não retrocede
                rel = max(last_rel, ts - first_ts)
                last_rel = rel
                if duration and not self.live and rel > duration:
                    return
                data = bytes(pkt)
                if self._dump is not None:
                    self._dump.write(pkt)
                yield RawFrame(
                    data=data,
                    timestamp=rel,
                    wire_length=pkt.wirelen or len(data),
                    linktype=self.linktype_of(pkt),
                )
                count += 1
                if packet_limit and count >= packet_limit:
                    return


class LiveCapture(CaptureSource):
    """Captura ao vivo via socket L2 do scapy (AF_PACKET no Linux, BPF no BSD/macOS)."""

    def __init__(self, interface: str, bpf_filter: Optional[str] = None) -> None:
        super().__init__(interface, bpf_filter)
        self.interface = interface
        self.sock = None

    def open(self) -> None:
        if self.sock is not None:
            return
        try:
            self.sock = conf.L2listen(iface=self.interface, filter=self.bpf_filter)
        except PermissionError:
            logger.error("Permission denied opening %s. Run with sudo or grant CAP_NET_RAW.", self.interface)
            raise
        except (OSError, Scapy_Exception, ValueError) as e:
            raise InterfaceError(self.interface, str(e)) from e
        logger.debug("listening on %s (filter=%r)", self.interface, self.bpf_filter)

    def close(self) -> None:
        try:
            if self.sock is not None:
                self.sock.close()
        except OSError as e:
            logger.debug("error closing socket on %s: %s", self.interface, e)
        finally:
            self.sock = None
            super().close()

    def _packets(self, stop_event: threading.Event, deadline: Optional[float]) -> Iterator:
        if self.sock is None:
            raise RuntimeError("Socket not initialised")
        while not stop_event.is_set():
            remain = POLL_INTERVAL
            if deadline is not None:
                remain = min(remain, deadline - time.monotonic())
                if remain <= 0:
                    return
            try:
                ready = self.sock.select([self.sock], remain)
                if not ready:
                    continue
                pkt = self.sock.recv()
            except PermissionError:
                raise
            except OSError as e:
                raise InterfaceError(self.interface, str(e)) from e
            if pkt is not None:
                yield pkt


class FileCapture(CaptureSource):
    """Leitura de arquivo pcap/pcapng; cada passagem reabre o arquivo do início."""

    live = False

    def __init__(self, path: str, bpf_filter: Optional[str] = None) -> None:
        super().__init__(path, bpf_filter)
        self.path = path
        self._linktype: Optional[int] = None
        self._empty = False

    def open(self) -> None:
        if not os.path.isfile(self.path):
            raise InterfaceError(self.path, 'no such capture file')
        # Arquivo vazio não é erro de leitura: a validação é quem falha
        self._empty = os.path.getsize(self.path) == 0
        if self._empty:
            return
        with self._reader() as reader:
            self._linktype = getattr(reader, 'linktype', None)

    def _reader(self):
        try:
            if self.bpf_filter:
                # Filtro BPF em arquivo: tcpdump reescreve o pcap já filtrado
                fd = tcpdump(self.path, args=['-w', '-'], flt=self.bpf_filter, getfd=True, quiet=True)
                return PcapReader(fd)
            return PcapReader(self.path)
        except PermissionError:
            raise
        except (OSError, Scapy_Exception) as e:
            raise InterfaceError(self.path, str(e)) from e

    def linktype_of(self, pkt) -> Optional[int]:
        if self._linktype is not None:
            return self._linktype
        return super().linktype_of(pkt)

    def _packets(self, stop_event: threading.Event, deadline: Optional[float]) -> Iterator:
        if self._empty:
            return
        with self._reader() as reader:
            for pkt in reader:
                if stop_event.is_set():
                    return
                if deadline is not None and time.monotonic() >= deadline:
                    return
                yield pkt


def open_source(config: MonitorConfig) -> CaptureSource:
    if config.capture_file:
        return FileCapture(config.capture_file, config.bpf_filter)
    return LiveCapture(config.interface, config.bpf_filter)
