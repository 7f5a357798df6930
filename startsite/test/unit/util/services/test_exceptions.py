#!/usr/bin/env python
"""Tests for :py:mod:`startsite.util.services.exceptions`"""
import unittest
import warnings

from startsite.util.services import exceptions
from startsite.util.services.exceptions import ColumnNotFoundError, ConfigurationError,\
                                               MalformedFileError, DataWarning,\
                                               filterwarnings, warn,\
                                               formatwarning


class TestColumnNotFoundError(unittest.TestCase):

    def test_message(self):
        err = ColumnNotFoundError("score_x",available=["chrom","score"],context="--order_by")
        self.assertEqual(str(err),"Column 'score_x' not found (required by --order_by). Available columns: chrom, score")
        self.assertEqual(str(ColumnNotFoundError("a")),"Column 'a' not found")

    def test_hierarchy(self):
        err = ColumnNotFoundError("a")
        self.assertIsInstance(err,ConfigurationError)
        self.assertIsInstance(err,KeyError)
        self.assertIsInstance(err,ValueError)


class TestMalformedFileError(unittest.TestCase):

    def test_message(self):
        self.assertEqual(str(MalformedFileError("a.bed","bad field",line_num=3)),
                         "Error opening file 'a.bed' at line 3: bad field")
        self.assertEqual(str(MalformedFileError("a.bed","bad field")),
                         "Error opening file 'a.bed': bad field")


class TestOncePerFamily(unittest.TestCase):

    def setUp(self):
        self.old_filters  = list(exceptions.family_filters)
        self.old_registry = set(exceptions.family_registry)
        exceptions.family_filters[:] = []
        exceptions.family_registry.clear()

    def tearDown(self):
        exceptions.family_filters[:] = self.old_filters
        exceptions.family_registry.clear()
        exceptions.family_registry.update(self.old_registry)

    def test_one_warning_per_family(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            filterwarnings("onceperfamily",message="Sample .* has no reads",category=DataWarning)
            for name in ("a","b","c"):
                warn("Sample %s has no reads" % name,DataWarning)
            warn("Something else",DataWarning)

        messages = [str(X.message) for X in caught]
        self.assertEqual(messages,["Sample a has no reads","Something else"])

    def test_filter_added_once(self):
        filterwarnings("onceperfamily",message="dup",category=DataWarning)
        filterwarnings("onceperfamily",message="dup",category=DataWarning)
        self.assertEqual(len(exceptions.family_filters),len(self.old_filters) + 1)

    def test_default_category(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            warn("plain message")
        self.assertTrue(issubclass(caught[0].category,UserWarning))


class TestFormatWarning(unittest.TestCase):

    def test_contains_parts(self):
        text = formatwarning("some message",DataWarning,"nonexistent_file.py",10,line="x = 1")
        self.assertIn("DataWarning",text)
        self.assertIn("some message",text)
        self.assertIn("nonexistent_file.py",text)
        self.assertIn("x = 1",text)
