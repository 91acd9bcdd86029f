import ipaddress
import struct
from typing import Dict, Optional, Tuple, Union

# Cabeçalhos de extensão IPv6 que podem preceder TCP/UDP
IPV6_EXT_HEADERS = {0, 43, 60}
IPV6_FRAGMENT = 44


def parse_ipv4(packet: bytes) -> Optional[Dict]:
    if len(packet) < 20:
        return None
    ver_ihl = packet[0]
    version = ver_ihl >> 4
    ihl = (ver_ihl & 0x0F) * 4
    if version != 4 or ihl < 20 or len(packet) < ihl:
        return None
    total_length = struct.unpack('!H', packet[2:4])[0]
    frag_offset = struct.unpack('!H', packet[6:8])[0] & 0x1FFF
    proto = packet[9]
    src = ipaddress.IPv4Address(packet[12:16]).compressed
    dst = ipaddress.IPv4Address(packet[16:20]).compressed
    # total_length 0 aparece com TSO; nesse caso usa o que foi capturado
    if ihl <= total_length <= len(packet):
        payload = packet[ihl:total_length]
    else:
        payload = packet[ihl:]
    return {
        'version': 4,
        'ihl': ihl,
        'proto': proto,
        'src': src,
        'dst': dst,
        'total_length': total_length,
        'fragment_offset': frag_offset,
        'payload': payload,
    }


def parse_ipv6(packet: bytes) -> Optional[Dict]:
    if len(packet) < 40:
        return None
    version = packet[0] >> 4
    if version != 6:
        return None
    payload_len = struct.unpack('!H', packet[4:6])[0]
    next_header = packet[6]
    src = ipaddress.IPv6Address(packet[8:24]).compressed
    dst = ipaddress.IPv6Address(packet[24:40]).compressed
    header_len = 40
    total_length = header_len + payload_len
    payload = packet[header_len:total_length] if total_length <= len(packet) else packet[header_len:]

    frag_offset = 0
    # Percorre extensões até o protocolo de transporte
    while next_header in IPV6_EXT_HEADERS or next_header == IPV6_FRAGMENT:
        if len(payload) < 8:
            break
        if next_header == IPV6_FRAGMENT:
            frag_offset = struct.unpack('!H', payload[2:4])[0] >> 3
            ext_len = 8
        else:
            ext_len = (payload[1] + 1) * 8
        if len(payload) < ext_len:
            break
        next_header = payload[0]
        payload = payload[ext_len:]

    return {
        'version': 6,
        'header_len': header_len,
        'next_header': next_header,
        'src': src,
        'dst': dst,
        'total_length': total_length,
        'fragment_offset': frag_offset,
        'payload': payload,
    }


IPLike = Dict[str, Union[int, str, bytes]]


def parse_ip(packet: bytes) -> Tuple[Optional[IPLike], Optional[str]]:
    """
    Tenta parsear como IPv4 depois IPv6. Retorna (dict_ip, nome_protocolo).
    nome_protocolo = 'IPv4' | 'IPv6' | None
    """
    ipv4 = parse_ipv4(packet)
    if ipv4:
        return ipv4, 'IPv4'
    ipv6 = parse_ipv6(packet)
    if ipv6:
        return ipv6, 'IPv6'
    return None, None


def transport_proto(ip_pkt: IPLike) -> int:
    return ip_pkt['proto'] if ip_pkt['version'] == 4 else ip_pkt['next_header']
