#!/usr/bin/env python3
import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from kbchat.scripts.ingest_data import load_file
from kbchat.utils.logger import get_logger
from kbchat.utils.security import mask_pii, preview


class TestLoadFile(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, name, content):
        path = os.path.join(self.tmp.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_csv(self):
        path = self.write("faq.csv", "question,answer,category,confidence\n"
                                     "What are your hours?,9 to 5,hours,0.8\n"
                                     "Incomplete row,,,\n"
                                     "Do you ship?,Yes,,\n")
        request = load_file(path)
        self.assertEqual(request.file_name, "faq.csv")
        self.assertEqual(request.file_type, "csv")
        self.assertEqual([p.question for p in request.pairs], ["What are your hours?", "Do you ship?"])
        self.assertEqual(request.pairs[0].confidence, 0.8)
        self.assertEqual(request.pairs[1].category, "general")
        self.assertIn("Q: Do you ship?\nA: Yes", request.full_text)

    def test_json_object(self):
        path = self.write("faq.json", json.dumps({
            "qa_pairs": [{"question": "Do you ship?", "answer": "Yes"}],
            "fullText": "original text",
        }))
        request = load_file(path)
        self.assertEqual(len(request.pairs), 1)
        self.assertEqual(request.full_text, "original text")

    def test_json_list(self):
        path = self.write("faq.json", json.dumps([{"question": "Do you ship?", "answer": "Yes"}]))
        self.assertEqual(load_file(path).pairs[0].answer, "Yes")

    def test_unsupported_extension(self):
        with self.assertRaises(ValueError):
            load_file(self.write("faq.pdf", "binary"))


class TestMasking(unittest.TestCase):
    def test_mask_pii(self):
        self.assertEqual(mask_pii("mail jane.doe@acme.example or call +1 555 123 4567"),
                         "mail [EMAIL] or call [REDACTED]")
        self.assertEqual(mask_pii(""), "")

    def test_preview_truncates(self):
        self.assertEqual(preview("x" * 100, limit=10), "x" * 10 + "...")


class TestLogger(unittest.TestCase):
    def test_child_loggers_share_the_package_handler(self):
        child = get_logger("ingestion")
        self.assertEqual(child.name, "kbchat.ingestion")
        self.assertIs(child.parent, get_logger())
        self.assertTrue(get_logger().handlers)

    def test_child_records_reach_the_package_logger(self):
        with self.assertLogs("kbchat", level="INFO") as captured:
            get_logger("retrieval").info("ranked 3 pairs")
        self.assertIn("ranked 3 pairs", captured.output[0])


if __name__ == "__main__":
    unittest.main()
