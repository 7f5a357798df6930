#!/usr/bin/env python
"""Tests for :py:mod:`startsite.readers.tables`"""
import os
import gzip
import shutil
import tempfile
import unittest
import warnings

from startsite.readers.tables import read_tss_table, read_tsr_table, read_bedgraph, read_bedgraph_pair
from startsite.genomics.tables import TSR_COLUMNS
from startsite.util.services.exceptions import MalformedFileError, FileFormatWarning


class TestTableReaders(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix="startsite")

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def _write(self,name,text,compress=False):
        filename = os.path.join(self.tmpdir,name)
        if compress:
            with gzip.open(filename,"wt") as fout:
                fout.write(text)
        else:
            with open(filename,"w") as fout:
                fout.write(text)
        return filename

    def test_read_tss_table_skips_comments(self):
        fn = self._write("a_TSSs.tsv","## args = {}\nchrom\tposition\tstrand\tscore\nchrI\t10\t+\t3\n")
        table = read_tss_table(fn)
        self.assertEqual(list(table["position"]),[10])

    def test_read_tss_table_errors(self):
        fn = self._write("bad.tsv","chrom\tposition\tscore\nchrI\t10\t3\n")
        self.assertRaises(MalformedFileError,read_tss_table,fn)
        fn = self._write("bad_strand.tsv","chrom\tposition\tstrand\tscore\nchrI\t10\t.\t3\n")
        self.assertRaises(MalformedFileError,read_tss_table,fn)

    def test_read_tsr_table_fills_columns(self):
        fn = self._write("a_TSRs.tsv","chrom\tstart\tend\tstrand\tscore\textra\nchrI\t10\t14\t-\t3\tx\n")
        table = read_tsr_table(fn)
        self.assertEqual(list(table.columns),["chrom","start","end","strand","score","width","tsr_id","extra"])
        self.assertEqual(table["width"].iloc[0],5)
        self.assertEqual(table["tsr_id"].iloc[0],"chrI:10:14:-")
        for col in table.columns[:7]:
            self.assertIn(col,TSR_COLUMNS)

    def test_read_bedgraph(self):
        text = "track type=bedGraph\n# comment\nchrI\t9\t10\t2\nchrI\t19\t22\t-1.5\n"
        table = read_bedgraph(self._write("a_min.bedgraph.gz",text,compress=True),"-")
        self.assertEqual(list(table["position"]),[10,20,21,22])
        self.assertEqual(list(table["score"]),[2.0,1.5,1.5,1.5])
        self.assertTrue((table["strand"] == "-").all())

    def test_read_bedgraph_zero_length(self):
        fn = self._write("z.bedgraph","chrI\t9\t9\t2\nchrI\t3\t4\t1\n")
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            table = read_bedgraph(fn,"+")
        self.assertEqual(list(table["position"]),[4])
        self.assertTrue(any(issubclass(X.category,FileFormatWarning) for X in caught))

    def test_read_bedgraph_malformed(self):
        self.assertRaises(MalformedFileError,read_bedgraph,self._write("m.bedgraph","chrI\t9\t10\n"),"+")
        self.assertRaises(MalformedFileError,read_bedgraph,self._write("n.bedgraph","chrI\tx\t10\t1\n"),"+")

    def test_read_bedgraph_pair(self):
        plus  = self._write("a_pos.bedgraph","chrI\t99\t100\t2\nchrI\t49\t50\t0\n")
        minus = self._write("a_min.bedgraph","chrI\t49\t50\t-3\n")
        table = read_bedgraph_pair(plus,minus)
        self.assertEqual(list(zip(table["position"],table["strand"],table["score"])),
                         [(50,"-",3.0),(100,"+",2.0)])
