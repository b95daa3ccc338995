"""Tests for the console demo script."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import demo


class TestDemo(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.directory = Path(self._tmp.name)

    def test_full_flow(self):
        with patch('builtins.print') as mock_print:
            code = demo.main(["--email", "User@Example.com", "--storage-dir", str(self.directory), "--iterations", "3"])

        self.assertEqual(code, 0)
        files = list(self.directory.glob("$*$user@example.com.json"))
        self.assertEqual(len(files), 1)
        printed = [call.args[0] for call in mock_print.call_args_list]
        self.assertIn("Challenge:", printed)
        self.assertIn("Session Id:", printed)

    def test_prompts_for_email(self):
        with patch('builtins.input', return_value="prompted@example.com"), patch('builtins.print'):
            code = demo.main(["--storage-dir", str(self.directory), "--iterations", "1"])

        self.assertEqual(code, 0)
        self.assertEqual(len(list(self.directory.glob("*prompted@example.com.json"))), 1)

    def test_short_secret_fails(self):
        with patch('builtins.print') as mock_print:
            code = demo.main(["--email", "a@example.com", "--storage-dir", str(self.directory), "--secret", "short"])

        self.assertEqual(code, 1)
        self.assertTrue(str(mock_print.call_args.args[0]).startswith("Error:"))


if __name__ == '__main__':
    unittest.main()
