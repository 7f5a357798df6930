#!/usr/bin/env python
"""Welcome to startsite!

This package identifies and analyzes transcription start sites (:term:`TSSs <TSS>`)
and transcription start regions (:term:`TSRs <TSR>`) from 5'-end sequencing
data such as CAGE, STRIPE-seq or RAMPAGE. It provides:

  #. A set of command-line scripts that call TSSs from alignments, cluster
     them into TSRs, and shape tables for plotting (see |bin|).

  #. A |SampleStore| holding every sample's tables, and engines that cluster,
     annotate, mark dominance, condition, export, and test tables for
     differential expression (see |genomics|).

  #. Readers for alignment, sequence and table files (see |readers|).


Package overview
----------------
startsite is divided into the following subpackages:

    ==============    =========================================================
    Package           Contents
    --------------    ---------------------------------------------------------
    |bin|             Command-line scripts
    |genomics|        Sample store and analysis engines for TSS and TSR tables
    |readers|         Readers for BAM, sequence, table and bedGraph files
    |util|            Utilities (e.g. exceptions, argument parsers, file openers)
    |test|            Unit and functional tests
    ==============    =========================================================

"""
__version__ = "0.1.0"

from startsite.genomics.tables import DataType
from startsite.genomics.sample_store import SampleStore
from startsite.genomics.conditioning import ConditioningSpec, Filter, condition_table
from startsite.genomics.clustering import cluster_tss, cluster_samples

from startsite.readers.alignments import BAMReadEndReader
from startsite.readers.sequence import FastaSequenceSource, TwoBitSequenceSource

from startsite.util.io.openers import read_sample_table

from startsite.util.services.exceptions import formatwarning
