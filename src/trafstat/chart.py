import importlib.util
import logging
import os
from typing import Sequence, Tuple

from .errors import ChartUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TITLE = 'Traffic Volume (Bytes) over Time'
DEFAULT_X_LABEL = 'Time (s)'
DEFAULT_Y_LABEL = 'Bytes'


def chart_available() -> bool:
    return importlib.util.find_spec('matplotlib') is not None


def render_chart(points: Sequence[Tuple[float, int]], title: str, x_label: str, y_label: str,
                 output_path: str) -> str:
    """
    Desenha a série (tempo, bytes acumulados) como gráfico de linha PNG 800x600.
    Levanta ChartUnavailable se o matplotlib não puder ser carregado.
    """
    try:
        import matplotlib
        matplotlib.use('Agg')
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ChartUnavailable(f"matplotlib is not available: {e}") from e

    out_dir = os.path.dirname(output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    fig, ax = plt.subplots(figsize=(8, 6), dpi=100)
    try:
        ax.plot(xs, ys, label=y_label)
        ax.set_title(title)
        ax.set_xlabel(x_label)
        ax.set_ylabel(y_label)
        ax.grid(True)
        ax.legend(loc='upper left')
        fig.savefig(output_path)
    finally:
        plt.close(fig)
    logger.info("Chart saved to %s", output_path)
    return output_path
