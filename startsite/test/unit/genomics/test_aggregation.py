#!/usr/bin/env python
"""Tests for :py:mod:`startsite.genomics.aggregation`"""
import unittest
import warnings
from collections import defaultdict

import numpy
import pandas as pd

from startsite.genomics.aggregation import ReadEnd, aggregate_read_ends, aggregate_samples,\
                                           g_fraction, correct_g_content, correct_samples
from startsite.genomics.sample_store import SampleStore
from startsite.genomics.tables import TSS_COLUMNS
from startsite.readers.sequence import FastaSequenceSource
from startsite.util.services.exceptions import EmptyResultWarning
from startsite.test.common import tss_table, make_store


class TestAggregateReadEnds(unittest.TestCase):

    def test_scenario_reads_collapse_to_positions(self):
        records = [ReadEnd("chrI",X,"+") for X in (100,100,101,105)]
        out = aggregate_read_ends(records)
        self.assertEqual(list(out.columns),TSS_COLUMNS)
        self.assertEqual(list(out["position"]),[100,101,105])
        self.assertEqual(list(out["score"]),[2.0,1.0,1.0])
        self.assertTrue((out["strand"] == "+").all())

    def test_strands_kept_apart(self):
        out = aggregate_read_ends([("chrI",10,"+"),("chrI",10,"-"),("chrI",10,"-",2.5)])
        self.assertEqual(len(out),2)
        self.assertEqual(out.loc[out["strand"] == "-","score"].iloc[0],3.5)

    def test_sorted_by_chrom_and_position(self):
        out = aggregate_read_ends([("chrII",5,"+"),("chrI",20,"+"),("chrI",3,"-")])
        self.assertEqual(list(zip(out["chrom"],out["position"])),[("chrI",3),("chrI",20),("chrII",5)])

    def test_weights_conserved_per_position(self):
        rng = numpy.random.RandomState(17)
        n = 500
        records = [(str(C),int(P),str(S),float(W)) for C, P, S, W in zip(rng.choice(["chrI","chrII"],n),
                                                                        rng.randint(1,60,size=n),
                                                                        rng.choice(["+","-"],n),
                                                                        rng.uniform(0,3,size=n))]
        expected = defaultdict(float)
        for chrom, pos, strand, weight in records:
            expected[(chrom,pos,strand)] += weight

        out = aggregate_read_ends(records)
        self.assertFalse(out.duplicated(["chrom","position","strand"]).any())
        self.assertEqual(len(out),len(expected))
        self.assertAlmostEqual(out["score"].sum(),sum(X[3] for X in records))
        for chrom, pos, strand, score in out.itertuples(index=False):
            self.assertAlmostEqual(score,expected[(chrom,pos,strand)])

    def test_empty_input(self):
        out = aggregate_read_ends([])
        self.assertEqual(len(out),0)
        self.assertEqual(list(out.columns),TSS_COLUMNS)

    def test_bad_records_raise(self):
        self.assertRaises(ValueError,aggregate_read_ends,[("chrI",1,".")])
        self.assertRaises(ValueError,aggregate_read_ends,[("chrI",1,"+",-1)])
        self.assertRaises(ValueError,aggregate_read_ends,[("chrI",1)])

    def test_aggregate_samples(self):
        store = SampleStore()
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            aggregate_samples(store,{ "a" : [ReadEnd("chrI",1,"+")], "empty" : [] })
        self.assertEqual(store.sample_names("tss"),["a","empty"])
        self.assertTrue(any(issubclass(X.category,EmptyResultWarning) for X in caught))


class TestGCorrection(unittest.TestCase):

    def setUp(self):
        #              1234567890
        self.source = FastaSequenceSource({ "chrI" : "AAGAAAAGGG" })

    def test_g_fraction(self):
        self.assertEqual(g_fraction("GGAA"),0.5)
        self.assertEqual(g_fraction("ggaa"),0.5)
        self.assertTrue(numpy.isnan(g_fraction("")))

    def test_factor_applied(self):
        # window around 3 is AGA, g = 1/3
        table = tss_table([("chrI",3,"+",10),("chrI",5,"+",10)])
        out = correct_g_content(table,self.source,flank=1,background=0.25)
        self.assertAlmostEqual(out["score"].iloc[0],10*(2.0/3)/0.75)
        self.assertAlmostEqual(out["score"].iloc[1],10/0.75)
        self.assertEqual(list(out["uncorrected_score"]),[10.0,10.0])
        self.assertEqual(list(table["score"]),[10.0,10.0])

    def test_minus_strand_uses_reverse_complement(self):
        # window 8..10 is GGG on plus; CCC on minus
        table = tss_table([("chrI",9,"-",3)])
        out = correct_g_content(table,self.source,flank=1)
        self.assertAlmostEqual(out["score"].iloc[0],3/0.75)

    def test_correction_is_idempotent(self):
        table = tss_table([("chrI",3,"+",10)])
        once  = correct_g_content(table,self.source)
        twice = correct_g_content(once,self.source)
        self.assertAlmostEqual(once["score"].iloc[0],twice["score"].iloc[0])

    def test_bad_parameters(self):
        table = tss_table([("chrI",3,"+",10)])
        self.assertRaises(ValueError,correct_g_content,table,self.source,flank=-1)
        self.assertRaises(ValueError,correct_g_content,table,self.source,background=1)

    def test_correct_samples_renormalizes(self):
        store = make_store({ "s" : tss_table([("chrI",3,"+",10),("chrI",5,"+",10)]) })
        correct_samples(store,self.source)
        raw  = store.get_samples("tss","s")["s"]
        norm = store.get_samples("tss","s",use_normalized=True)["s"]
        self.assertIn("uncorrected_score",raw.columns)
        self.assertAlmostEqual(norm["score"].sum(),1e6)
        self.assertLess(raw["score"].iloc[0],raw["score"].iloc[1])
