import io
import threading
import unittest

from trafstat.ui import Ticker, human_bytes, render_status


class TestFormatting(unittest.TestCase):
    def test_human_bytes(self):
        self.assertEqual(human_bytes(0), '0B')
        self.assertEqual(human_bytes(800), '800B')
        self.assertEqual(human_bytes(2048), '2KB')
        self.assertEqual(human_bytes(5 * 1024 ** 3), '5GB')

    def test_render_status(self):
        line = render_status(1, {'frames': 5, 'bytes': 800, 'devices': 3})
        self.assertTrue(line.startswith('\rCapturing traffic... /'))
        self.assertIn('pkts=5', line)
        self.assertIn('bytes=800B', line)
        self.assertIn('devices=3', line)


class TestTicker(unittest.TestCase):
    def test_start_and_stop(self):
        stream = io.StringIO()
        drawn = threading.Event()

        def snapshot():
            drawn.set()
            return {'frames': 1, 'bytes': 60, 'devices': 2}

        ticker = Ticker(snapshot, interval=0.01, stream=stream, enabled=True)
        ticker.start()
        self.assertTrue(ticker.running)
        self.assertTrue(drawn.wait(2))
        ticker.stop()
        self.assertFalse(ticker.running)
        output = stream.getvalue()
        self.assertIn('pkts=1', output)
        self.assertTrue(output.endswith('\n'))
        self.assertEqual(output.count('Capture stopped.'), 1)

        ticker.stop()
        self.assertEqual(stream.getvalue(), output)

    def test_disabled_writes_nothing(self):
        stream = io.StringIO()
        ticker = Ticker(dict, interval=0.01, stream=stream, enabled=False)
        ticker.start()
        self.assertFalse(ticker.running)
        ticker.stop()
        self.assertEqual(stream.getvalue(), '')

    def test_non_tty_stream_disables_by_default(self):
        self.assertFalse(Ticker(dict, stream=io.StringIO()).enabled)


if __name__ == '__main__':
    unittest.main()
