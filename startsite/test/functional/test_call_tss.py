#!/usr/bin/env python
"""Functional tests for :py:mod:`startsite.bin.call_tss`"""
import os
import shutil
import tempfile
import unittest

import pysam

from startsite.bin.call_tss import main
from startsite.readers.tables import read_tss_table, read_bedgraph_pair
from startsite.test.common import make_alignment

_HEADER = { "HD" : { "VN" : "1.0" },
            "SQ" : [{ "SN" : "chrI", "LN" : 1000 }] }


class TestCallTSS(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.tmpdir = tempfile.mkdtemp(prefix="startsite")
        samples = { "wt"  : [make_alignment("r1",0,99,20,"+"),
                             make_alignment("r2",0,99,25,"+"),
                             make_alignment("r3",0,199,10,"-")],
                    "mut" : [make_alignment("r1",0,49,20,"+")],
                  }
        cls.bams = {}
        for name, reads in samples.items():
            filename = os.path.join(cls.tmpdir,"%s.bam" % name)
            with pysam.AlignmentFile(filename,"wb",header=_HEADER) as fout:
                for read in reads:
                    fout.write(read)
            cls.bams[name] = filename

        cls.fasta = os.path.join(cls.tmpdir,"genome.fa")
        with open(cls.fasta,"w") as fout:
            fout.write(">chrI\n%s\n" % ("A"*1000))

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tmpdir)

    def _outbase(self,name):
        return os.path.join(self.tmpdir,name)

    def test_tables_named_from_files(self):
        outbase = self._outbase("tables")
        main([outbase,"-v","--count_files",self.bams["wt"],self.bams["mut"]])

        wt = read_tss_table("%s_wt_TSSs.tsv" % outbase)
        self.assertEqual(sorted(zip(wt["chrom"],wt["position"],wt["strand"],wt["score"])),
                         [("chrI",100,"+",2.0),("chrI",209,"-",1.0)])

        mut = read_tss_table("%s_mut_TSSs.tsv" % outbase)
        self.assertEqual(list(mut["position"]),[50])

    def test_bedgraph_output(self):
        outbase = self._outbase("tracks")
        main([outbase,"-v","--output_format","bedgraph",
              "--count_files",self.bams["wt"],"--sample_names","sample1"])

        plus  = "%s_sample1_pos.bedgraph" % outbase
        minus = "%s_sample1_min.bedgraph" % outbase
        table = read_bedgraph_pair(plus,minus)
        self.assertEqual(list(zip(table["position"],table["strand"],table["score"])),
                         [(100,"+",2.0),(209,"-",1.0)])

    def test_g_correction(self):
        outbase = self._outbase("corrected")
        main([outbase,"-v","--correct_g","--g_background","0.5","--sequence_file",self.fasta,
              "--count_files",self.bams["mut"]])

        table = read_tss_table("%s_mut_TSSs.tsv" % outbase)
        self.assertEqual(list(table["uncorrected_score"]),[1.0])
        self.assertAlmostEqual(table["score"].iloc[0],2.0)

    def test_correction_requires_sequence(self):
        self.assertRaises(SystemExit,main,[self._outbase("bad"),"-v","--correct_g",
                                           "--count_files",self.bams["mut"]])

    def test_mismatched_sample_names(self):
        self.assertRaises(SystemExit,main,[self._outbase("bad"),"-v",
                                           "--count_files",self.bams["wt"],self.bams["mut"],
                                           "--sample_names","only_one"])
