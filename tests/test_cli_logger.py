import io
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch
from blake3build.cli_logger import Logger


class TestLogger(unittest.TestCase):

    def setUp(self):
        self.log_dir = tempfile.mkdtemp()
        self.logger = Logger(log_dir=self.log_dir)

    def tearDown(self):
        shutil.rmtree(self.log_dir)

    def read_log(self):
        with open(self.logger.log_file) as f:
            return f.read()

    @patch('sys.stderr', new_callable=io.StringIO)
    @patch('sys.stdout', new_callable=io.StringIO)
    def test_levels_pick_their_stream(self, mock_stdout, mock_stderr):
        self.logger.info("probing host")
        self.logger.warning("oneTBB not found")
        self.assertIn("probing host", mock_stdout.getvalue())
        self.assertNotIn("oneTBB", mock_stdout.getvalue())
        self.assertIn("oneTBB not found", mock_stderr.getvalue())

    @patch('sys.stderr', new_callable=io.StringIO)
    @patch('sys.stdout', new_callable=io.StringIO)
    def test_reserved_stdout_stays_clean(self, mock_stdout, mock_stderr):
        with self.logger.reserve_stdout():
            self.logger.info("Loading configuration")
            self.logger.step_info("* AMD64 assembly", indent=2)
            self.logger.success("done")
        self.assertEqual(mock_stdout.getvalue(), "")
        self.assertIn("Loading configuration", mock_stderr.getvalue())
        self.assertFalse(self.logger.stdout_reserved)

        self.logger.info("after")
        self.assertIn("after", mock_stdout.getvalue())

    @patch('sys.stdout', new_callable=io.StringIO)
    def test_log_file_is_uncoloured(self, mock_stdout):
        self.logger.info("Selected implementation strategy: none")
        self.logger.step_info("- 3 source files", indent=2)
        contents = self.read_log()
        self.assertIn("[INFO] Selected implementation strategy: none", contents)
        self.assertIn("[STEP]   - 3 source files", contents)
        self.assertNotIn("\x1b[", contents)
        self.assertTrue(os.path.dirname(self.logger.log_file) == self.log_dir)

    @patch('sys.stdout', new_callable=io.StringIO)
    def test_progress_yields_every_chunk(self, mock_stdout):
        chunks = [b"a" * 10, b"b" * 10]
        received = list(self.logger.progress(iter(chunks), description="Downloading x.tar.gz", total=20))
        self.assertEqual(received, chunks)
        self.assertIn("100%", mock_stdout.getvalue())
        self.assertIn("Downloading x.tar.gz complete!", mock_stdout.getvalue())

    @patch('sys.stdout', new_callable=io.StringIO)
    def test_progress_without_total_passes_through(self, mock_stdout):
        received = list(self.logger.progress(iter([b"x"]), total=0))
        self.assertEqual(received, [b"x"])
        self.assertEqual(mock_stdout.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
