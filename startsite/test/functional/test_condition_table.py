#!/usr/bin/env python
"""Functional tests for :py:mod:`startsite.bin.condition_table`"""
import os
import shutil
import tempfile
import unittest

from startsite.bin.condition_table import main
from startsite.util.io.openers import read_sample_table

_TABLE = """chrom\tposition\tstrand\tscore\tfeature_type
chrI\t10\t+\t5\tpromoter
chrI\t20\t+\t1\tgenic
chrI\t30\t-\t3\tgenic
chrI\t40\t-\t8\tintergenic
"""


class TestConditionTable(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix="startsite")
        self.infile = os.path.join(self.tmpdir,"in.tsv")
        self.outfile = os.path.join(self.tmpdir,"out.tsv")
        with open(self.infile,"w") as fout:
            fout.write(_TABLE)

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_filter_and_order(self):
        main(["-v","--filter","score >= 2",self.infile,self.outfile])
        table = read_sample_table(self.outfile)
        self.assertEqual(list(table["position"]),[10,30,40])
        self.assertEqual(list(table["plot_order"]),[2,3,1])
        self.assertNotIn("grouping",table.columns)

    def test_quantiles(self):
        main(["-v","--filter","score >= 2","--quantile_by","score","3",self.infile,self.outfile])
        table = read_sample_table(self.outfile)
        self.assertEqual(list(table["grouping"]),[2,1,3])
        self.assertEqual(list(table["plot_order"]),[1,1,1])

    def test_grouping_ascending(self):
        main(["-v","--grouping","feature_type","--ascending",self.infile,self.outfile])
        table = read_sample_table(self.outfile)
        self.assertEqual(list(table["grouping"]),["promoter","genic","genic","intergenic"])
        self.assertEqual(list(table["plot_order"]),[1,1,2,1])

    def test_membership_filter_without_order(self):
        main(["-v","--filter","feature_type not in genic","--no_order",self.infile,self.outfile])
        table = read_sample_table(self.outfile)
        self.assertEqual(list(table["position"]),[10,40])
        self.assertNotIn("plot_order",table.columns)

    def test_missing_column_exits(self):
        self.assertRaises(SystemExit,main,["-v","--order_by","tss_count",self.infile,self.outfile])
        self.assertFalse(os.path.exists(self.outfile))
