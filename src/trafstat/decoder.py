from .errors import DecodeSkip
from .models import Frame, RawFrame
from .parsers.dns import is_dns_port, query_name
from .parsers.ip import parse_ip, transport_proto
from .parsers.link import RAW_TYPES, split_l2_l3
from .parsers.transport import IPPROTO_TCP, parse_transport


def decode(raw: RawFrame) -> Frame:
    """
    Reduz um quadro bruto a Frame. Quadros sem IP ou sem DNS são válidos
    (campos None); levanta DecodeSkip para quadros malformados.
    """
    if not raw.data:
        raise DecodeSkip('empty frame')

    l2, l3 = split_l2_l3(raw.data, raw.linktype)
    if l3 is None:
        if l2 is None and raw.linktype is not None and raw.linktype not in RAW_TYPES:
            raise DecodeSkip('truncated link-layer header')
        return Frame(relative_timestamp=raw.timestamp, length_bytes=raw.wire_length)

    ip_pkt, _ip_name = parse_ip(l3)
    if not ip_pkt:
        if l2 is None and raw.linktype is None:
            # heurística sem tipo de enlace: apenas não é IP
            raise DecodeSkip('unrecognised frame')
        raise DecodeSkip('truncated or invalid IP header')

    qname = None
    if ip_pkt['fragment_offset'] == 0:
        proto = transport_proto(ip_pkt)
        transp = parse_transport(proto, ip_pkt['payload'])
        if transp and is_dns_port(transp['src_port'], transp['dst_port']):
            qname = query_name(transp['payload'], over_tcp=(proto == IPPROTO_TCP))

    return Frame(
        relative_timestamp=raw.timestamp,
        length_bytes=raw.wire_length,
        src_ip=ip_pkt['src'],
        dst_ip=ip_pkt['dst'],
        dns_query_name=qname,
    )
