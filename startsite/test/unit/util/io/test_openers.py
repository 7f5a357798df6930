#!/usr/bin/env python
"""Tests for :py:mod:`startsite.util.io.openers`"""
import os
import bz2
import gzip
import shutil
import argparse
import tempfile
import unittest

from startsite.util.io.openers import get_short_name, pretty_print_dict, opener,\
                                      argsopener, read_sample_table, NullWriter


class TestGetShortName(unittest.TestCase):

    def test_get_short_name(self):
        tests = [("test","test",{}),
                 ("test.py","test",dict(terminator=".py")),
                 ("/home/jdoe/test.py","test",dict(terminator=".py")),
                 ("/home/jdoe/test.py.py","test.py",dict(terminator=".py")),
                 ("/home/jdoe/wt_1.bam","wt_1",dict(terminator=".bam")),
                 ("/home/jdoe/test.py.2","test.py.2",dict(terminator=".py")),
                 ("startsite.bin.call_tss","call_tss",dict(separator=r"\.",terminator="")),
                 ]
        for inp, expected, kwargs in tests:
            self.assertEqual(get_short_name(inp,**kwargs),expected,inp)


class TestPrettyPrintDict(unittest.TestCase):

    def test_pretty_print_dict(self):
        dtmp = { "a" : 1,
                 "b" : "some string",
                 "max_gap" : 25,
                }
        expected = """{
          'a'       : 1,
          'b'       : 'some string',
          'max_gap' : 25,
}
"""
        self.assertEqual(pretty_print_dict(dtmp),expected)

    def test_empty(self):
        self.assertEqual(pretty_print_dict({}),"{\n\n}\n")


class TestFileHandling(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix="startsite")

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_opener_detects_compression(self):
        for ext, module in ((".gz",gzip),(".bz2",bz2)):
            filename = os.path.join(self.tmpdir,"table.tsv" + ext)
            with opener(filename,"w") as fout:
                fout.write("chrom\tposition\n")
            with module.open(filename,"rt") as fin:
                self.assertEqual(fin.read(),"chrom\tposition\n")
            with opener(filename) as fin:
                self.assertEqual(fin.read(),"chrom\tposition\n")

    def test_argsopener_writes_comment_header(self):
        filename = os.path.join(self.tmpdir,"out_TSSs.tsv")
        ns = argparse.Namespace(max_gap=25,outbase="out")
        with argsopener(filename,ns) as fout:
            fout.write("chrom\tposition\tstrand\tscore\n")
            fout.write("chrI\t10\t+\t2.0\n")

        with open(filename) as fin:
            lines = fin.read().strip().split("\n")
        header = [X for X in lines if X.startswith("##")]
        self.assertTrue(header[0].startswith("## date = "))
        self.assertTrue(any("'max_gap'" in X and "25" in X for X in header))
        self.assertTrue(any("'outbase'" in X and "'out'" in X for X in header))

        table = read_sample_table(filename)
        self.assertEqual(list(table.columns),["chrom","position","strand","score"])
        self.assertEqual(table["position"].iloc[0],10)

    def test_read_sample_table_overrides(self):
        filename = os.path.join(self.tmpdir,"out.csv")
        with open(filename,"w") as fout:
            fout.write("a,b\n1,2\n")
        table = read_sample_table(filename,sep=",")
        self.assertEqual(list(table["b"]),[2])


class TestNullWriter(unittest.TestCase):

    def test_write(self):
        writer = NullWriter()
        writer.write("nothing to see")
        writer.close()
        self.assertEqual(str(writer),"NullWriter()")
