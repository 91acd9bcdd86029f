"""
trafstat: estatísticas de tráfego de rede a partir de captura ao vivo ou pcap.

Componentes:
- capture: fonte de quadros (interface ao vivo ou arquivo) via scapy
- parsers / decoder: interpretação de enlace, IP, TCP/UDP e DNS em Frames
- stats: agregados da sessão (dispositivos, fluxos, rankings, série de bytes)
- report: resumo em texto e exportação CSV
- chart: gráfico de volume acumulado (matplotlib, opcional)
- session: ciclo de vida da captura com limpeza garantida
- ui: banner e indicador de progresso
- main: CLI

Importante: captura ao vivo requer privilégios (root ou CAP_NET_RAW).
"""

__version__ = '2.0.0'
