#!/usr/bin/env python
"""Tests for :py:mod:`startsite.genomics.dominance`"""
import unittest

import numpy
import pandas as pd

from startsite.genomics.dominance import mark_dominant, mark_dominant_samples
from startsite.genomics.clustering import cluster_samples
from startsite.util.services.exceptions import ConfigurationError, ColumnNotFoundError
from startsite.test.common import scenario_tss, make_store


class TestMarkDominant(unittest.TestCase):

    def setUp(self):
        self.table = pd.DataFrame({ "tsr_id" : ["a","a","a","b","b",numpy.nan],
                                    "score"  : [1.0,5.0,2.0,3.0,3.0,99.0] })

    def test_one_winner_per_group(self):
        mark_dominant(self.table,"tsr_id")
        self.assertEqual(list(self.table["dominant"]),[False,True,False,True,False,False])

    def test_rows_not_reordered(self):
        before = self.table.copy()
        out = mark_dominant(self.table,"tsr_id",column="flag")
        self.assertIs(out,self.table)
        pd.testing.assert_frame_equal(out.drop(columns=["flag"]),before)

    def test_threshold_excludes_groups(self):
        mark_dominant(self.table,"tsr_id",threshold=4)
        self.assertEqual(list(self.table["dominant"]),[False,True,False,False,False,False])

    def test_missing_column(self):
        self.assertRaises(ColumnNotFoundError,mark_dominant,self.table,"gene_id")

    def test_empty_table(self):
        table = pd.DataFrame({ "gene_id" : [], "score" : [] })
        mark_dominant(table,"gene_id")
        self.assertEqual(len(table["dominant"]),0)


class TestMarkDominantSamples(unittest.TestCase):

    def test_tss_per_tsr(self):
        store = make_store({ "a" : scenario_tss() })
        cluster_samples(store,max_gap=1)
        mark_dominant_samples(store,"tss","tsr")
        for normalized in (False,True):
            table = store.get_samples("tss","a",use_normalized=normalized)["a"]
            self.assertEqual(list(table["dominant_tsr"]),[True,False,True])

    def test_bad_level(self):
        store = make_store({ "a" : scenario_tss() })
        self.assertRaises(ConfigurationError,mark_dominant_samples,store,"tsr","tsr")
        self.assertRaises(ConfigurationError,mark_dominant_samples,store,"tss","exon")
