import unittest

from trafstat.models import Frame
from trafstat.stats import TrafficStats

from packets import A, B, C, scenario_frames


def ingest_all(frames):
    s = TrafficStats()
    for f in frames:
        s.ingest(f)
    return s


class TestStats(unittest.TestCase):
    def test_scenario(self):
        s = ingest_all(scenario_frames())
        self.assertEqual(s.device_list(), [A, B, C])
        self.assertEqual(s.most_requesting()[0], (A, 3))
        self.assertEqual(s.largest_senders(), [(A, 300), (C, 300), (B, 200)])
        self.assertEqual(s.top_domains(), [('example.com', 1)])
        self.assertEqual(s.series[-1], (1.5, 800))
        self.assertEqual(s.flow_list(), [(A, B), (A, C), (B, A), (C, A)])
        self.assertEqual(s.most_visited(), [(B, 2), (A, 2), (C, 1)])

    def test_device_set_is_union_of_present_addresses(self):
        frames = [
            Frame(0.0, 10, '1.1.1.1', None),
            Frame(0.1, 10, None, '2.2.2.2'),
            Frame(0.2, 10, None, None),
            Frame(0.3, 10, '3.3.3.3', '1.1.1.1'),
        ]
        s = ingest_all(frames)
        self.assertEqual(s.devices, {'1.1.1.1', '2.2.2.2', '3.3.3.3'})
        self.assertNotIn('', s.devices)
        # par só existe quando origem e destino estão presentes
        self.assertEqual(s.flows, {('3.3.3.3', '1.1.1.1')})

    def test_byte_totals_match_frames_with_source(self):
        frames = [Frame(0.0, 100, 'a', 'b'), Frame(0.1, 40, None, 'b'), Frame(0.2, 7, 'b', None)]
        s = ingest_all(frames)
        self.assertEqual(sum(s.bytes_by_source.values()), 107)
        self.assertEqual(s.total_bytes, 147)

    def test_rankings_are_descending(self):
        frames = [Frame(i * 0.1, 1, 's', d) for i, d in enumerate('xyyzzz')]
        ranking = ingest_all(frames).most_visited()
        counts = [c for _ip, c in ranking]
        self.assertEqual(counts, sorted(counts, reverse=True))
        self.assertEqual(ranking[0], ('z', 3))

    def test_ties_keep_first_seen_order(self):
        frames = [Frame(0.0, 1, 'q', 'x'), Frame(0.1, 1, 'p', 'x'), Frame(0.2, 1, 'r', 'x')]
        self.assertEqual([ip for ip, _ in ingest_all(frames).most_requesting()], ['q', 'p', 'r'])

    def test_series_never_decreases(self):
        frames = [Frame(1.0, 10), Frame(0.5, 0), Frame(2.0, 5)]
        series = ingest_all(frames).series
        self.assertEqual(series, [(1.0, 10), (1.0, 10), (2.0, 15)])

    def test_empty(self):
        s = TrafficStats()
        self.assertEqual(s.device_list(), [])
        self.assertEqual(s.top_domains(), [])
        self.assertEqual(s.snapshot(), {'frames': 0, 'bytes': 0, 'devices': 0})


if __name__ == '__main__':
    unittest.main()
