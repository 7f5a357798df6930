#!/usr/bin/env python
"""Collapse the 5' ends of :term:`read alignments` into per-position :term:`TSS` counts.

Summary
-------
An alignment source (for example :class:`~startsite.readers.alignments.BAMReadEndReader`)
yields one |ReadEnd| per read: the chromosome, 1-based coordinate and strand of
the read's 5' end, and a weight. :func:`aggregate_read_ends` sums the weights of
all reads that share a position, producing a TSS table with one row per
unique `(chrom, position, strand)`::

    >>> records = [ReadEnd("chrI",100,"+"), ReadEnd("chrI",100,"+"), ReadEnd("chrI",101,"+")]
    >>> aggregate_read_ends(records)
      chrom  position strand  score
    0  chrI       100      +    2.0
    1  chrI       101      +    1.0


G-content correction
--------------------
Cap-based TSS libraries over-count starts in G-rich context, because reverse
transcriptase adds untemplated G to cDNA ends. :func:`correct_g_content`
rescales each TSS by a factor derived from the G fraction `g` of a small
strand-oriented window around it:

.. math::

    factor = (1 - g) / (1 - background)

Positions in G-poor context gain, positions in G-rich context lose. The
uncorrected value is kept in an `uncorrected_score` column and the factor is
always applied to it, so repeating the correction gives the same result.
"""
from collections import namedtuple, OrderedDict

import numpy
import pandas as pd

from startsite.genomics.tables import TSS_COLUMNS, DataType, check_strands, empty_tss_table
from startsite.util.io.openers import NullWriter
from startsite.util.services.exceptions import warn, EmptyResultWarning


ReadEnd = namedtuple("ReadEnd",["chrom","position","strand","weight"],defaults=(1.0,))
ReadEnd.__doc__ = """5' end of a single read alignment

Parameters
----------
chrom : str
    Chromosome name

position : int
    1-based coordinate of the 5' end

strand : str
    `'+'` or `'-'`

weight : float, optional
    Contribution of this read (Default: `1.0`)
"""


#===============================================================================
# INDEX: aggregation
#===============================================================================

def _records_to_frame(records):
    rows = []
    for rec in records:
        if len(rec) == 3:
            rows.append((rec[0],rec[1],rec[2],1.0))
        elif len(rec) == 4:
            rows.append(tuple(rec))
        else:
            raise ValueError("Read end records must have 3 or 4 fields. Found: %s" % (rec,))

    return pd.DataFrame.from_records(rows,columns=["chrom","position","strand","score"])

def aggregate_read_ends(records):
    """Sum read weights at each unique `(chrom, position, strand)`

    Parameters
    ----------
    records : iterable
        |ReadEnd| objects, or 3-tuples `(chrom, position, strand)`, or
        4-tuples `(chrom, position, strand, weight)`

    Returns
    -------
    :class:`pandas.DataFrame`
        TSS table sorted by chromosome, position and strand. Empty if
        `records` is empty.

    Raises
    ------
    ValueError
        if a weight is negative, or a strand is not `'+'` or `'-'`
    """
    frame = _records_to_frame(records)
    if len(frame) == 0:
        return empty_tss_table()

    check_strands(frame["strand"].unique())
    frame["score"] = frame["score"].astype(float)
    if (frame["score"] < 0).any():
        raise ValueError("Read weights must be non-negative.")
    frame["position"] = frame["position"].astype(numpy.int64)

    out = frame.groupby(["chrom","position","strand"],sort=True,as_index=False)["score"].sum()
    return out[TSS_COLUMNS].reset_index(drop=True)

def aggregate_samples(store,sources,printer=None):
    """Aggregate read ends for several samples and add the results to `store`

    Parameters
    ----------
    store : |SampleStore|
        Destination. Tables are stored as :attr:`DataType.TSS`

    sources : dict
        Maps sample names to iterables of read-end records
        (see :func:`aggregate_read_ends`)

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages
    """
    printer = NullWriter() if printer is None else printer
    tables = OrderedDict()
    for name, records in sources.items():
        printer.write("Aggregating read 5' ends for sample %s ..." % name)
        tables[name] = aggregate_read_ends(records)
        if len(tables[name]) == 0:
            warn("Sample '%s' has no read alignments." % name,EmptyResultWarning)
        else:
            printer.write("Found %s unique TSSs for sample %s." % (len(tables[name]),name))

    store.add_samples(DataType.TSS,tables)


#===============================================================================
# INDEX: G-content correction
#===============================================================================

def g_fraction(sequence):
    """Return the fraction of bases in `sequence` that are G

    Parameters
    ----------
    sequence : str

    Returns
    -------
    float
        `numpy.nan` if `sequence` is empty
    """
    if len(sequence) == 0:
        return numpy.nan
    sequence = str(sequence).upper()
    return float(sequence.count("G")) / len(sequence)

def correct_g_content(table,sequence_source,flank=1,background=0.25):
    """Rescale TSS scores by local G content

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        TSS table

    sequence_source : |SequenceSource|
        Genome sequence, queried with
        :meth:`~startsite.readers.sequence.SequenceSource.fetch`

    flank : int, optional
        Bases on each side of the TSS included in the window (Default: `1`)

    background : float, optional
        Expected G fraction in the absence of bias, in `[0,1)` (Default: `0.25`)

    Returns
    -------
    :class:`pandas.DataFrame`
        Copy of `table` with corrected `score` and an `uncorrected_score` column
    """
    if flank < 0:
        raise ValueError("flank must be non-negative. Found %s" % flank)
    if not 0 <= background < 1:
        raise ValueError("background must be in [0,1). Found %s" % background)

    out = table.copy()
    if "uncorrected_score" not in out.columns:
        out["uncorrected_score"] = out["score"].astype(float)

    check_strands(out["strand"].unique())
    factors = numpy.ones(len(out))
    for n, (chrom, position, strand) in enumerate(zip(out["chrom"],out["position"],out["strand"])):
        seq = sequence_source.fetch(chrom,int(position) - flank,2*flank + 1,strand=strand)
        g = g_fraction(seq)
        if not numpy.isnan(g):
            factors[n] = (1.0 - g) / (1.0 - background)

    out["score"] = out["uncorrected_score"].values * factors
    return out

def correct_samples(store,sequence_source,samples="all",flank=1,background=0.25,printer=None):
    """Apply :func:`correct_g_content` to stored TSS tables, then renormalize them

    Parameters
    ----------
    store : |SampleStore|

    sequence_source : |SequenceSource|

    samples : str or list, optional
        Samples to correct (Default: `'all'`)

    flank, background
        See :func:`correct_g_content`

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages
    """
    printer = NullWriter() if printer is None else printer
    names = store.resolve_samples(DataType.TSS,samples)
    for name in names:
        printer.write("Correcting G-content bias for sample %s ..." % name)
        with store.modify(DataType.TSS,name) as (raw, normalized):
            corrected = correct_g_content(raw,sequence_source,flank=flank,background=background)
            raw["uncorrected_score"] = corrected["uncorrected_score"].values
            raw["score"] = corrected["score"].values
            normalized["uncorrected_score"] = corrected["uncorrected_score"].values

    store.renormalize(DataType.TSS,names)
