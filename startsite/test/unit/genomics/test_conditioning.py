#!/usr/bin/env python
"""Tests for :py:mod:`startsite.genomics.conditioning`"""
import unittest
import warnings

import numpy
import pandas as pd

from startsite.genomics.conditioning import Filter, ConditioningSpec, quantile_bins, condition_table,\
                                            condition_samples, preliminary_filter
from startsite.util.services.exceptions import ConfigurationError, ColumnNotFoundError,\
                                              DataWarning, EmptyResultWarning
from startsite.test.common import quiet


def _table():
    return pd.DataFrame({ "score"        : [1.0,2.0,3.0,4.0],
                          "feature_type" : ["promoter","genic","promoter","intergenic"],
                          "width"        : [1,5,numpy.nan,2],
                        },index=[10,11,12,13])


class TestFilter(unittest.TestCase):

    def test_parse_comparison(self):
        self.assertEqual(Filter.parse("score >= 5"),Filter("score",">=",5))
        self.assertEqual(Filter.parse("width<2.5"),Filter("width","<",2.5))
        self.assertEqual(Filter.parse("feature_type == 'genic'"),Filter("feature_type","==","genic"))

    def test_parse_membership(self):
        filter_ = Filter.parse("feature_type not in promoter, genic")
        self.assertEqual(filter_.operator,"not in")
        self.assertEqual(filter_.value,("promoter","genic"))
        self.assertEqual(Filter.parse("feature_type in genic").value,("genic",))

    def test_parse_failure(self):
        self.assertRaises(ConfigurationError,Filter.parse,"score")
        self.assertRaises(ConfigurationError,Filter.parse,"score ~ 3")

    def test_bad_operator_or_value(self):
        self.assertRaises(ConfigurationError,Filter,"score","=>",3)
        self.assertRaises(ConfigurationError,Filter,"score","in","abc")

    def test_null_fails(self):
        mask = Filter("width","<",100).mask(_table())
        self.assertEqual(list(mask),[True,True,False,True])
        mask = Filter("width","!=",5).mask(_table())
        self.assertEqual(list(mask),[True,False,False,True])

    def test_type_mismatch(self):
        self.assertRaises(ConfigurationError,Filter("feature_type",">",3).mask,_table())


class TestConditioningSpec(unittest.TestCase):

    def test_defaults(self):
        spec = ConditioningSpec()
        self.assertEqual(spec.filters,())
        self.assertEqual(spec.order_by,"score")
        self.assertTrue(spec.descending)
        self.assertEqual(spec.columns,["score"])

    def test_filter_forms(self):
        spec = ConditioningSpec(filters=["score > 1",("width","<",3),Filter("score","<",4)])
        self.assertEqual(len(spec.filters),3)
        self.assertEqual(spec.filters[1],Filter("width","<",3))
        self.assertEqual(ConditioningSpec(filters="score > 1").filters,(Filter("score",">",1),))

    def test_invalid_options(self):
        self.assertRaises(ConfigurationError,ConditioningSpec,quantile_by=("score",0))
        self.assertRaises(ConfigurationError,ConditioningSpec,quantile_by="score")
        self.assertRaises(ConfigurationError,ConditioningSpec,quantile_by=(3,2))
        self.assertRaises(ConfigurationError,ConditioningSpec,order_by=3)
        self.assertRaises(ConfigurationError,ConditioningSpec,filters=[5])

    def test_from_dict(self):
        spec = ConditioningSpec.from_dict({ "quantile_by" : ("score",2), "descending" : False })
        self.assertEqual(spec.quantile_by,("score",2))
        self.assertFalse(spec.descending)
        self.assertRaises(ConfigurationError,ConditioningSpec.from_dict,{ "sort" : "score" })


class TestQuantileBins(unittest.TestCase):

    def test_four_rows_two_bins(self):
        bins = quantile_bins(pd.Series([1.0,2.0,3.0,4.0]),2)
        self.assertEqual(list(bins),[1,1,2,2])

    def test_order_independent_of_position(self):
        bins = quantile_bins(pd.Series([4.0,1.0,3.0,2.0]),2)
        self.assertEqual(list(bins),[2,1,2,1])

    def test_ties_at_max_share_top_bin(self):
        bins = quantile_bins(pd.Series([1.0,5.0,5.0,5.0]),4)
        self.assertEqual(list(bins),[1,4,4,4])

    def test_nulls(self):
        bins = quantile_bins(pd.Series([1.0,numpy.nan,3.0]),2)
        self.assertEqual(bins.iloc[0],1)
        self.assertTrue(pd.isna(bins.iloc[1]))
        self.assertEqual(bins.iloc[2],2)

    def test_bins_in_range(self):
        values = pd.Series(numpy.random.RandomState(3).rand(101))
        bins = quantile_bins(values,7)
        self.assertEqual(set(bins),set(range(1,8)))
        counts = bins.value_counts()
        self.assertLessEqual(counts.max() - counts.min(),1)

    def test_bins_follow_value_order(self):
        values = pd.Series(numpy.random.RandomState(8).permutation(200).astype(float))
        bins = quantile_bins(values,7)
        stats = values.groupby(bins.astype(int).values).agg(["min","max"])
        self.assertEqual(list(stats.index),list(range(1,8)))
        self.assertTrue((stats["max"].values[:-1] < stats["min"].values[1:]).all())


class TestConditionTable(unittest.TestCase):

    def test_quantiles_of_four_rows(self):
        out = condition_table(_table(),{ "quantile_by" : ("score",2) })
        self.assertEqual(list(out["grouping"]),[1,1,2,2])
        self.assertEqual(list(out["plot_order"]),[2,1,2,1])

    def test_default_orders_by_descending_score(self):
        out = condition_table(_table())
        self.assertEqual(list(out["plot_order"]),[4,3,2,1])
        self.assertNotIn("grouping",out.columns)
        self.assertEqual(list(out.index),[10,11,12,13])

    def test_ascending_order_with_nulls_last(self):
        out = condition_table(_table(),ConditioningSpec(order_by="width",descending=False))
        self.assertEqual(list(out["plot_order"]),[1,3,4,2])

    def test_filters_then_group(self):
        spec = ConditioningSpec(filters=["feature_type in promoter,genic"],grouping="feature_type")
        out = condition_table(_table(),spec)
        self.assertEqual(list(out.index),[10,11,12])
        self.assertEqual(list(out["grouping"]),["promoter","genic","promoter"])
        self.assertEqual(list(out["plot_order"]),[2,1,1])

    def test_filters_are_idempotent(self):
        spec = ConditioningSpec(filters=["score >= 2","feature_type in promoter,genic"])
        once  = condition_table(_table(),spec)
        twice = condition_table(once,ConditioningSpec(filters=spec.filters,order_by=None))
        self.assertEqual(list(once.index),[11,12])
        pd.testing.assert_frame_equal(once,twice)

    def test_no_order(self):
        out = condition_table(_table(),ConditioningSpec(order_by=None))
        self.assertNotIn("plot_order",out.columns)

    def test_input_unchanged(self):
        table = _table()
        before = table.copy()
        condition_table(table,{ "quantile_by" : ("score",2), "filters" : ["score > 1"] })
        pd.testing.assert_frame_equal(table,before)

    def test_quantile_wins_over_grouping(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            out = condition_table(_table(),ConditioningSpec(quantile_by=("score",2),grouping="feature_type"))
        self.assertEqual(list(out["grouping"]),[1,1,2,2])
        self.assertTrue(any(issubclass(X.category,DataWarning) for X in caught))

    def test_empty_result_warns(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            out = condition_table(_table(),{ "filters" : ["score > 100"], "quantile_by" : ("score",3) })
        self.assertEqual(len(out),0)
        self.assertTrue(any(issubclass(X.category,EmptyResultWarning) for X in caught))

    def test_too_many_quantiles(self):
        self.assertRaises(ConfigurationError,condition_table,_table(),{ "quantile_by" : ("width",4) })

    def test_non_numeric_quantile_column(self):
        self.assertRaises(ConfigurationError,condition_table,_table(),{ "quantile_by" : ("feature_type",2) })

    def test_missing_column(self):
        with self.assertRaises(ColumnNotFoundError) as ctx:
            condition_table(_table(),{ "filters" : ["gene_id == x"] })
        self.assertIsInstance(ctx.exception,KeyError)


class TestConditionSamples(unittest.TestCase):

    def test_validates_all_before_conditioning(self):
        tables = { "a" : _table(), "b" : _table().drop(columns=["width"]) }
        self.assertRaises(ColumnNotFoundError,condition_samples,tables,{ "filters" : ["width > 0"] })

    def test_each_sample_conditioned(self):
        with quiet():
            out = condition_samples({ "a" : _table(), "b" : _table().iloc[:2] },{ "quantile_by" : ("score",2) })
        self.assertEqual(list(out),["a","b"])
        self.assertEqual(list(out["b"]["grouping"]),[1,2])


class TestPreliminaryFilter(unittest.TestCase):

    def test_threshold_and_dominance(self):
        table = _table()
        table["dominant_tsr"] = [True,False,True,numpy.nan]
        out = preliminary_filter({ "a" : table },dominant="tsr",threshold=2)
        self.assertEqual(list(out["a"].index),[12])

    def test_missing_dominance_column(self):
        self.assertRaises(ColumnNotFoundError,preliminary_filter,{ "a" : _table() },dominant="dominant_gene")
