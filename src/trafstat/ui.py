import sys
import threading
from typing import Callable, Dict, Optional, TextIO

BANNER = r"""#######################################
#                                     #
#         .        *        .         #
#      *       _____       *          #
#    .       /     \       .          #
#         | () () |         *         #
#          \  ^  /                    #
#           |||||           *         #
#         * |||||   .                 #
#    .                          *     #
#         Traffic Statistics          #
#                                     #
#######################################
"""

SPINNER = ('|', '/', '-', '\\')


def human_bytes(n: float) -> str:
    # Conversão simples para legibilidade
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if n < 1024:
            return f"{n:.0f}{unit}"
        n /= 1024
    return f"{n:.1f}PB"


def print_banner(stream: Optional[TextIO] = None) -> None:
    print(BANNER, file=stream or sys.stdout)


def render_status(tick: int, snapshot: Dict) -> str:
    glyph = SPINNER[tick % len(SPINNER)]
    return (f"\rCapturing traffic... {glyph}  "
            f"pkts={snapshot.get('frames', 0)} "
            f"bytes={human_bytes(snapshot.get('bytes', 0))} "
            f"devices={snapshot.get('devices', 0)}")


class Ticker:
    """Indicador de progresso em thread própria, independente da chegada de quadros.

    Se a saída não for TTY (ex: logs redirecionados), não escreve nada para
    evitar poluir o arquivo com códigos de controle.
    """

    def __init__(self, get_snapshot_fn: Callable[[], Dict], interval: float = 1.0,
                 stream: Optional[TextIO] = None, enabled: Optional[bool] = None) -> None:
        self.get_snapshot = get_snapshot_fn
        self.interval = interval
        self.stream = stream or sys.stdout
        if enabled is None:
            enabled = self.stream.isatty()
        self.enabled = enabled
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if not self.enabled or self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='trafstat-ticker', daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.is_set():
            self.stream.write(render_status(self.ticks, self.get_snapshot()))
            self.stream.flush()
            self.ticks += 1
            self._stop.wait(self.interval)

    def stop(self) -> None:
        """Cancela e aguarda a thread; seguro chamar mais de uma vez."""
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        thread.join()
        self._thread = None
        self.stream.write("\rCapture stopped." + ' ' * 40 + "\n")
        self.stream.flush()
