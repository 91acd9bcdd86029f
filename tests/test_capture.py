import os
import struct
import tempfile
import threading
import unittest

from scapy.all import DNS, DNSQR, IP, UDP, Ether, wrpcap

from trafstat.capture import FileCapture, LiveCapture, open_source
from trafstat.config import MonitorConfig
from trafstat.decoder import decode
from trafstat.errors import CaptureValidationError, InterfaceError
from trafstat.parsers.link import DLT_EN10MB


ETH = Ether(src='02:00:00:00:00:01', dst='02:00:00:00:00:02')


def make_packets():
    pkts = [
        ETH / IP(src='10.0.0.1', dst='10.0.0.2') / UDP(sport=40000, dport=9999),
        ETH / IP(src='10.0.0.1', dst='8.8.8.8') / UDP(sport=40001, dport=53) / DNS(rd=1, qd=DNSQR(qname='example.com')),
        ETH / IP(src='10.0.0.2', dst='10.0.0.1') / UDP(sport=9999, dport=40000),
    ]
    for pkt, ts in zip(pkts, (1000.0, 1000.5, 1001.25)):
        pkt.time = ts
    return pkts


class TestFileCapture(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, 'sample.pcap')
        wrpcap(self.path, make_packets())

    def tearDown(self):
        self._tmp.cleanup()

    def test_frames_have_relative_timestamps(self):
        with FileCapture(self.path) as src:
            frames = list(src.frames())
        self.assertEqual([f.timestamp for f in frames], [0.0, 0.5, 1.25])
        self.assertTrue(all(f.linktype == DLT_EN10MB for f in frames))
        self.assertEqual(frames[0].wire_length, len(frames[0].data))

    def test_frames_decode(self):
        with FileCapture(self.path) as src:
            decoded = [decode(f) for f in src.frames()]
        self.assertEqual(decoded[1].dns_query_name, 'example.com')
        self.assertEqual(decoded[2].src_ip, '10.0.0.2')

    def test_packet_limit_and_duration(self):
        with FileCapture(self.path) as src:
            self.assertEqual(len(list(src.frames(packet_limit=2))), 2)
            # em arquivo a duração é medida no tempo de captura
            self.assertEqual(len(list(src.frames(duration=1.0))), 2)

    def test_stop_event(self):
        stop = threading.Event()
        stop.set()
        with FileCapture(self.path) as src:
            self.assertEqual(list(src.frames(stop)), [])

    def test_probe_does_not_consume_frames(self):
        with FileCapture(self.path) as src:
            self.assertEqual(src.probe(timeout=1.0), 1)
            self.assertEqual(len(list(src.frames())), 3)

    def test_empty_file_fails_validation(self):
        empty = os.path.join(self._tmp.name, 'empty.pcap')
        with open(empty, 'wb') as fh:
            # apenas o cabeçalho global pcap, sem pacotes
            fh.write(struct.pack('<IHHiIII', 0xA1B2C3D4, 2, 4, 0, 0, 65535, 1))
        with FileCapture(empty) as src:
            with self.assertRaises(CaptureValidationError) as cm:
                src.probe(timeout=0.5)
        self.assertIn('empty.pcap', str(cm.exception))

    def test_zero_byte_file_fails_validation(self):
        empty = os.path.join(self._tmp.name, 'zero.pcap')
        open(empty, 'wb').close()
        with FileCapture(empty) as src:
            with self.assertRaises(CaptureValidationError):
                src.probe(timeout=0.5)
            self.assertEqual(list(src.frames()), [])

    def test_missing_file(self):
        with self.assertRaises(InterfaceError):
            FileCapture(os.path.join(self._tmp.name, 'nope.pcap')).open()

    def test_not_a_pcap(self):
        bogus = os.path.join(self._tmp.name, 'bogus.pcap')
        with open(bogus, 'wb') as fh:
            fh.write(b'definitely not a capture file')
        with self.assertRaises(InterfaceError):
            FileCapture(bogus).open()

    def test_dump_writes_pcap(self):
        out = os.path.join(self._tmp.name, 'copy.pcap')
        src = FileCapture(self.path)
        src.open()
        src.start_dump(out)
        list(src.frames())
        src.close()
        with FileCapture(out) as copy:
            self.assertEqual(len(list(copy.frames())), 3)


class TestOpenSource(unittest.TestCase):
    def test_file_takes_precedence(self):
        src = open_source(MonitorConfig(interface='eth0', capture_file='x.pcap', bpf_filter='udp'))
        self.assertIsInstance(src, FileCapture)
        self.assertEqual(src.name, 'x.pcap')
        self.assertEqual(src.bpf_filter, 'udp')

    def test_live(self):
        src = open_source(MonitorConfig(interface='eth0'))
        self.assertIsInstance(src, LiveCapture)
        self.assertEqual(src.name, 'eth0')
        src.close()


if __name__ == '__main__':
    unittest.main()
