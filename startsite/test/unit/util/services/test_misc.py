#!/usr/bin/env python
"""Tests for :py:mod:`startsite.util.services.misc`"""
import numpy
import unittest

from startsite.util.services.misc import guess_formatter, number, parse_value_list


class TestMisc(unittest.TestCase):

    def setUp(self):
        self.tests = [("nan",numpy.nan),
                      ("NaN",numpy.nan),
                      ("None",numpy.nan),
                      ("inf",numpy.inf),
                      ("-Inf",-numpy.inf),
                      ("5",5),
                      ("-5",-5),
                      ("5.1",5.1),
                      ("1e-10",1e-10),
                      ("a5","a5"),
                      ("promoter","promoter"),
                      ("True",True),
                      ("false",False),
                      ("True5","True5"),
                      ("'1'","1"),
                      ("\"chrI\"","chrI"),
                      ("NA",numpy.nan),
                      ]

    def test_guess_formatter(self):
        for inp, expected in self.tests:
            found = guess_formatter(inp)
            if isinstance(expected,float) and numpy.isnan(expected):
                self.assertTrue(numpy.isnan(found),inp)
            else:
                self.assertEqual(found,expected,inp)
                self.assertEqual(type(found),type(expected),inp)

    def test_number_prefers_int(self):
        self.assertIsInstance(number("12"),int)
        self.assertIsInstance(number("12.0"),float)
        self.assertRaises(ValueError,number,"twelve")

    def test_parse_value_list(self):
        self.assertEqual(parse_value_list("promoter, 'exon',5"),["promoter","exon",5])
        self.assertEqual(parse_value_list("a;b;",sep=";"),["a","b"])
        self.assertEqual(parse_value_list(""),[])
