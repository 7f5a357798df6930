#!/usr/bin/env python
"""Tests for :py:mod:`startsite.util.io.filters`"""
import re
import unittest
from io import StringIO

from startsite.util.io.filters import NameDateWriter, ColorWriter, colored, supports_color


class TestNameDateWriter(unittest.TestCase):

    def test_prepends_name_and_date(self):
        stream = StringIO()
        writer = NameDateWriter("cluster_tss",stream=stream)
        writer.write("Clustering sample wt_1 ...")
        writer.write("Done!\n")
        lines = stream.getvalue().split("\n")
        pattern = r"^cluster_tss \[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\]: %s$"
        self.assertTrue(re.match(pattern % re.escape("Clustering sample wt_1 ..."),lines[0]))
        self.assertTrue(re.match(pattern % "Done!",lines[1]))
        self.assertEqual(lines[2],"")

    def test_multiline_messages(self):
        stream = StringIO()
        writer = NameDateWriter("call_tss",stream=stream)
        writer.write("first\nsecond\n")
        lines = stream.getvalue().split("\n")
        self.assertEqual(len(lines),3)
        self.assertTrue(lines[0].startswith("call_tss [") and lines[0].endswith("]: first"))
        self.assertTrue(lines[1].startswith("call_tss [") and lines[1].endswith("]: second"))

    def test_no_color_without_tty(self):
        writer = ColorWriter(stream=StringIO())
        self.assertEqual(writer.color("text",color="red"),"text")
        self.assertFalse(writer.isatty())


class TestColored(unittest.TestCase):

    def test_supports_color(self):
        self.assertFalse(supports_color(StringIO()))
        self.assertFalse(supports_color(object()))

    def test_colored_contains_text(self):
        self.assertIn("text",colored("text",color="red"))
