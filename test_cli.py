"""
Tests for the ytsummary-generate command line entry point.
"""

import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

from ytsummary import cli
from ytsummary.llm.errors import AuthenticationError, ErrorKind, ExhaustedCascadeError
from ytsummary.llm.types import GenerationResult
from ytsummary.models import TopicList


class TestCli(unittest.TestCase):
    def run_cli(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(argv)
        return code, out.getvalue(), err.getvalue()

    @patch("ytsummary.cli.GenerationClient")
    def test_prints_text_and_model(self, mock_client_cls):
        mock_client_cls.return_value.generate_detailed.return_value = GenerationResult(
            text="a summary", model_used="gemini-2.5-flash"
        )

        code, out, err = self.run_cli(["Summarize this", "--model", "gemini-2.5-flash", "--shape", "topics"])

        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "a summary")
        self.assertIn("gemini-2.5-flash", err)
        kwargs = mock_client_cls.return_value.generate_detailed.call_args.kwargs
        self.assertIs(kwargs["response_model"], TopicList)
        self.assertEqual(kwargs["preferred_model"], "gemini-2.5-flash")
        self.assertIsNone(kwargs["timeout_ms"])

    @patch("ytsummary.cli.GenerationClient")
    def test_prompt_and_schema_files(self, mock_client_cls):
        mock_client_cls.return_value.generate_detailed.return_value = GenerationResult(text="{}", model_used="m")
        with tempfile.TemporaryDirectory() as tmp:
            prompt_file = Path(tmp) / "prompt.txt"
            prompt_file.write_text("from file", encoding="utf-8")
            schema_file = Path(tmp) / "shape.json"
            schema_file.write_text(json.dumps({"type": "object"}), encoding="utf-8")

            code, _, _ = self.run_cli([
                "--prompt-file", str(prompt_file),
                "--schema-file", str(schema_file),
                "--timeout-ms", "1500",
            ])

        self.assertEqual(code, 0)
        args, kwargs = mock_client_cls.return_value.generate_detailed.call_args
        self.assertEqual(args[0], "from file")
        self.assertEqual(kwargs["response_model"], {"type": "object"})
        self.assertEqual(kwargs["timeout_ms"], 1500)

    @patch("ytsummary.cli.GenerationClient")
    def test_exhausted_cascade_exit_code(self, mock_client_cls):
        mock_client_cls.return_value.generate_detailed.side_effect = ExhaustedCascadeError(
            ["m1", "m2"], ErrorKind.OVERLOADED
        )

        code, out, err = self.run_cli(["hi"])

        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("m1, m2", err)
        self.assertIn("overloaded", err)

    @patch("ytsummary.cli.GenerationClient")
    def test_fatal_error_exit_code(self, mock_client_cls):
        mock_client_cls.return_value.generate_detailed.side_effect = AuthenticationError("bad key")

        code, _, err = self.run_cli(["hi"])

        self.assertEqual(code, 1)
        self.assertIn("authentication failed", err)

    def test_missing_prompt_is_usage_error(self):
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli([])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
