import struct
from typing import Optional, Tuple

# Tipos de enlace (pcap DLT / LINKTYPE)
DLT_NULL = 0
DLT_EN10MB = 1
DLT_RAW = 101
DLT_LOOP = 108
DLT_LINUX_SLL = 113
DLT_IPV4 = 228
DLT_IPV6 = 229
# Alguns sistemas (OpenBSD) numeram DLT_RAW como 12 ou 14
RAW_TYPES = {DLT_RAW, 12, 14, DLT_IPV4, DLT_IPV6}

ETH_P_IP = 0x0800
ETH_P_IPV6 = 0x86DD
ETH_VLAN_TAGS = (0x8100, 0x88A8, 0x9100)
IP_ETHERTYPES = (ETH_P_IP, ETH_P_IPV6)

# AF_INET6 varia por sistema (Linux 10, BSD 24, FreeBSD 28, macOS 30)
NULL_FAMILIES = {2, 10, 24, 28, 30}


def split_ethernet(frame: bytes) -> Tuple[Optional[bytes], Optional[bytes]]:
    """Retorna (l2, l3) para quadro Ethernet; l3 é None se não for IP."""
    if len(frame) < 14:
        return None, None
    offset = 12
    eth_proto = struct.unpack('!H', frame[offset:offset + 2])[0]
    # Pula tags 802.1Q / 802.1ad (4 bytes cada)
    while eth_proto in ETH_VLAN_TAGS and len(frame) >= offset + 6:
        offset += 4
        eth_proto = struct.unpack('!H', frame[offset:offset + 2])[0]
    header_end = offset + 2
    if eth_proto in IP_ETHERTYPES:
        return frame[:header_end], frame[header_end:]
    return frame[:header_end], None


def split_sll(frame: bytes) -> Tuple[Optional[bytes], Optional[bytes]]:
    # Linux cooked capture: 16 bytes, protocolo nos 2 últimos
    if len(frame) < 16:
        return None, None
    proto = struct.unpack('!H', frame[14:16])[0]
    if proto in IP_ETHERTYPES:
        return frame[:16], frame[16:]
    return frame[:16], None


def split_null(frame: bytes) -> Tuple[Optional[bytes], Optional[bytes]]:
    # Loopback BSD: família de endereço em 4 bytes, ordem de bytes do host de captura
    if len(frame) < 4:
        return None, None
    little = struct.unpack('<I', frame[:4])[0]
    big = struct.unpack('!I', frame[:4])[0]
    if little in NULL_FAMILIES or big in NULL_FAMILIES:
        return frame[:4], frame[4:]
    return frame[:4], None


def split_heuristic(frame: bytes) -> Tuple[Optional[bytes], Optional[bytes]]:
    """
    Sem tipo de enlace conhecido: tenta Ethernet pelo EtherType e depois
    o nibble de versão IP (caso típico de TUN).
    """
    if len(frame) >= 14:
        l2, l3 = split_ethernet(frame)
        if l3 is not None:
            return l2, l3
    if frame:
        version = (frame[0] >> 4) & 0xF
        if version in (4, 6):
            return None, frame
    return None, None


def split_l2_l3(frame: bytes, linktype: Optional[int] = None) -> Tuple[Optional[bytes], Optional[bytes]]:
    """
    Separa o cabeçalho de enlace. Retorna (l2, l3); l3 é None quando o quadro
    não transporta IPv4/IPv6.
    """
    if linktype == DLT_EN10MB:
        return split_ethernet(frame)
    if linktype == DLT_LINUX_SLL:
        return split_sll(frame)
    if linktype in (DLT_NULL, DLT_LOOP):
        return split_null(frame)
    if linktype in RAW_TYPES:
        return None, frame
    return split_heuristic(frame)
