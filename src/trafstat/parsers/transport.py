import struct
from typing import Dict, Optional

IPPROTO_TCP = 6
IPPROTO_UDP = 17


def parse_tcp(payload: bytes) -> Optional[Dict]:
    if len(payload) < 20:
        return None
    src_port, dst_port = struct.unpack('!HH', payload[:4])
    data_offset = (payload[12] >> 4) * 4
    if data_offset < 20 or len(payload) < data_offset:
        return None
    return {
        'src_port': src_port,
        'dst_port': dst_port,
        'payload': payload[data_offset:],
    }


def parse_udp(payload: bytes) -> Optional[Dict]:
    if len(payload) < 8:
        return None
    src_port, dst_port, length = struct.unpack('!HHH', payload[:6])
    app = payload[8:length] if 8 <= length <= len(payload) else payload[8:]
    return {
        'src_port': src_port,
        'dst_port': dst_port,
        'payload': app,
    }


def parse_transport(proto: int, payload: bytes) -> Optional[Dict]:
    if proto == IPPROTO_TCP:
        return parse_tcp(payload)
    if proto == IPPROTO_UDP:
        return parse_udp(payload)
    return None
