#!/usr/bin/env python
"""Tests for :py:mod:`startsite.genomics.tables`"""
import unittest

import numpy
import pandas as pd

from startsite.genomics.tables import DataType, TSS_COLUMNS, TSR_COLUMNS, empty_tss_table, empty_tsr_table,\
                                      check_strands, feature_id, feature_ids, split_feature_ids,\
                                      five_prime_ends
from startsite.test.common import tss_table


class TestDataType(unittest.TestCase):

    def test_parse_strings(self):
        self.assertIs(DataType.parse("tss"),DataType.TSS)
        self.assertIs(DataType.parse("TSR"),DataType.TSR)
        self.assertIs(DataType.parse("tss_features"),DataType.TSS_FEATURES)
        self.assertIs(DataType.parse(DataType.TSR),DataType.TSR)

    def test_parse_unknown_raises(self):
        self.assertRaises(ValueError,DataType.parse,"gene")

    def test_properties(self):
        self.assertTrue(DataType.TSR.is_region)
        self.assertFalse(DataType.TSS.is_region)
        self.assertTrue(DataType.TSR_FEATURES.is_feature)
        self.assertFalse(DataType.TSS.is_feature)


class TestTableHelpers(unittest.TestCase):

    def test_empty_tables_have_columns(self):
        self.assertEqual(list(empty_tss_table().columns),TSS_COLUMNS)
        self.assertEqual(list(empty_tsr_table().columns),TSR_COLUMNS)
        self.assertEqual(len(empty_tsr_table()),0)

    def test_check_strands(self):
        check_strands(["+","-","+"])
        self.assertRaises(ValueError,check_strands,["+","."])

    def test_feature_id(self):
        self.assertEqual(feature_id("chrI",100,105,"+"),"chrI:100:105:+")

    def test_feature_ids_tss(self):
        table = tss_table([("chrI",100,"+",1),("chrII",7,"-",2)])
        self.assertEqual(list(feature_ids(table,"tss")),["chrI:100:100:+","chrII:7:7:-"])

    def test_feature_ids_tsr(self):
        table = pd.DataFrame({ "chrom" : ["chrI"], "start" : [10], "end" : [20], "strand" : ["-"] })
        self.assertEqual(list(feature_ids(table,DataType.TSR)),["chrI:10:20:-"])

    def test_split_feature_ids(self):
        ids = pd.Series(["chrI:10:20:-","chr:with:colons:5:6:+"])
        out = split_feature_ids(ids)
        self.assertEqual(list(out["chrom"]),["chrI","chr:with:colons"])
        self.assertEqual(list(out["start"]),[10,5])
        self.assertEqual(list(out["end"]),[20,6])
        self.assertEqual(list(out["strand"]),["-","+"])

    def test_split_feature_ids_gene_names(self):
        out = split_feature_ids(pd.Series(["geneA","geneB"]))
        self.assertTrue(out["start"].isna().all())

    def test_five_prime_ends(self):
        table = pd.DataFrame({ "chrom"  : ["chrI","chrI"],
                               "start"  : [10,30],
                               "end"    : [20,40],
                               "strand" : ["+","-"] })
        self.assertTrue((five_prime_ends(table,"tsr") == numpy.array([10,40])).all())
        tss = tss_table([("chrI",5,"-",1)])
        self.assertEqual(list(five_prime_ends(tss,"tss")),[5])
