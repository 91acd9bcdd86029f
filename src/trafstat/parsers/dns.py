import struct
from typing import Dict, Optional, Tuple

DNS_PORTS = {53, 5353, 5355}  # DNS, mDNS, LLMNR
HEADER_LEN = 12
MAX_NAME_LEN = 255
MAX_POINTER_JUMPS = 32
MAX_QUESTIONS = 64
# QUERY, IQUERY, STATUS, NOTIFY, UPDATE
KNOWN_OPCODES = {0, 1, 2, 4, 5}


def is_dns_port(src_port: int, dst_port: int) -> bool:
    return src_port in DNS_PORTS or dst_port in DNS_PORTS


def parse_header(payload: bytes) -> Optional[Dict]:
    if len(payload) < HEADER_LEN:
        return None
    flags, qdcount = struct.unpack('!HH', payload[2:6])
    return {
        'opcode': (flags >> 11) & 0xF,
        'qdcount': qdcount,
    }


def _printable(label: bytes) -> bool:
    return all(0x20 < b < 0x7F or b >= 0x80 for b in label)


def read_name(message: bytes, offset: int) -> Tuple[Optional[str], int]:
    """
    Lê um nome (sequência de labels) a partir de offset, seguindo ponteiros de
    compressão. Retorna (nome, offset_após_nome); nome None se malformado.
    Nome raiz retorna ''.
    """
    labels = []
    total = 0
    jumps = 0
    end = None
    pos = offset
    while True:
        if pos >= len(message):
            return None, offset
        length = message[pos]
        if length == 0:
            pos += 1
            break
        kind = length & 0xC0
        if kind == 0xC0:
            if pos + 1 >= len(message):
                return None, offset
            jumps += 1
            if jumps > MAX_POINTER_JUMPS:
                return None, offset
            if end is None:
                end = pos + 2
            pos = ((length & 0x3F) << 8) | message[pos + 1]
            continue
        if kind != 0:
            # tipos de label estendidos (0x40/0x80) não são suportados
            return None, offset
        label = message[pos + 1:pos + 1 + length]
        if len(label) < length:
            return None, offset
        total += length + 1
        if total > MAX_NAME_LEN:
            return None, offset
        if not _printable(label):
            return None, offset
        try:
            labels.append(label.decode('utf-8'))
        except UnicodeDecodeError:
            return None, offset
        pos += 1 + length
    return '.'.join(labels), (end if end is not None else pos)


def query_name(payload: bytes, over_tcp: bool = False) -> Optional[str]:
    """Nome da primeira pergunta da mensagem DNS, ou None."""
    if over_tcp:
        # DNS sobre TCP: prefixo de 2 bytes com o tamanho da mensagem.
        # Só o segmento que começa a mensagem tem um prefixo que cobre o resto
        if len(payload) < 2 + HEADER_LEN:
            return None
        (length,) = struct.unpack('!H', payload[:2])
        payload = payload[2:]
        if length < HEADER_LEN or length < len(payload):
            return None
    header = parse_header(payload)
    if not header or header['opcode'] not in KNOWN_OPCODES:
        return None
    if not 1 <= header['qdcount'] <= MAX_QUESTIONS:
        return None
    name, _end = read_name(payload, HEADER_LEN)
    if not name:
        return None
    return name
