#!/usr/bin/env python
"""Cluster nearby :term:`TSSs <TSS>` into :term:`transcription start regions <TSR>`.

Summary
-------
TSSs are partitioned by chromosome and strand, and sorted by position. Only
*eligible* TSSs, those with `score >= min_score`, become members of a region.
Walking from left to right over eligible TSSs, a new region begins whenever
the number of bases strictly between a TSS and the previous eligible TSS
exceeds `max_gap`. Ineligible TSSs neither join nor split regions.

For TSSs at 100, 101 and 105 (each with score >= `min_score`):

    ===========   ===============================
    `max_gap`     Regions
    -----------   -------------------------------
    3             `[100,105]`
    1             `[100,101]`, `[105,105]`
    ===========   ===============================

Each region reports:

    ==============  ============================================================
    **Column**      **Definition**
    --------------  ------------------------------------------------------------
    `start`,`end`   First and last member position (1-based, inclusive)
    `score`         Sum of member scores
    `width`         `end - start + 1`
    `shape_index`   Shannon entropy (base 2) of member score fractions, divided
                    by `log2(n_tss)`. 0 for a single-member region, 1 when all
                    members have equal scores
    `n_tss`         Number of member TSSs
    `tsr_id`        Identifier `chrom:start:end:strand`
    ==============  ============================================================

Partitions are independent, so they may be clustered in parallel by passing
`processes > 1`.
"""
import functools
import multiprocessing
from collections import OrderedDict

import numpy
import pandas as pd
from scipy.stats import entropy

from startsite.genomics.tables import TSR_COLUMNS, DataType, check_strands, empty_tsr_table, feature_id
from startsite.util.io.openers import NullWriter
from startsite.util.services.exceptions import ConfigurationError, ColumnNotFoundError, warn, EmptyResultWarning

_REQUIRED = ("chrom","position","strand","score")


def shape_index(scores):
    """Normalized Shannon entropy of the score distribution over a region's members

    Parameters
    ----------
    scores : array-like
        Scores of member TSSs

    Returns
    -------
    float
        Value in `[0,1]`. 0 if there is fewer than two members or no signal.
    """
    scores = numpy.asarray(scores,dtype=float)
    if len(scores) < 2 or scores.sum() <= 0:
        return 0.0
    return float(entropy(scores,base=2) / numpy.log2(len(scores)))

def _check_parameters(table,max_gap,min_score):
    for col in _REQUIRED:
        if col not in table.columns:
            raise ColumnNotFoundError(col,table.columns,context="TSS clustering")
    if isinstance(max_gap,bool) or not isinstance(max_gap,(int,numpy.integer)) or max_gap < 0:
        raise ConfigurationError("max_gap must be a non-negative integer. Found: %r" % (max_gap,))
    if isinstance(min_score,bool) or not isinstance(min_score,(int,float,numpy.number)):
        raise ConfigurationError("min_score must be a number. Found: %r" % (min_score,))
    if not pd.api.types.is_numeric_dtype(table["score"]):
        raise ConfigurationError("Column 'score' must be numeric for TSS clustering")
    check_strands(table["strand"].unique())

def _cluster_partition(partition,max_gap=25,min_score=1):
    """Cluster TSSs from a single chromosome and strand

    Parameters
    ----------
    partition : tuple
        `(chrom, strand, positions, scores, rows)`, where the last three are
        parallel :class:`numpy.ndarray`, and `rows` holds row positions in the
        source table

    max_gap, min_score
        See :func:`cluster_tss`

    Returns
    -------
    list
        Region rows as tuples, ordered by start

    list
        `(row, tsr_id)` for every member TSS
    """
    chrom, strand, positions, scores, rows = partition
    order     = numpy.argsort(positions,kind="stable")
    positions = positions[order]
    scores    = scores[order]
    rows      = rows[order]

    eligible  = scores >= min_score
    positions = positions[eligible]
    scores    = scores[eligible]
    rows      = rows[eligible]
    if len(positions) == 0:
        return [], []

    gaps   = numpy.diff(positions) - 1
    breaks = numpy.flatnonzero(gaps > max_gap) + 1
    bounds = numpy.concatenate(([0],breaks,[len(positions)]))

    regions = []
    members = []
    for a, b in zip(bounds[:-1],bounds[1:]):
        start = int(positions[a])
        end   = int(positions[b-1])
        tsr_id = feature_id(chrom,start,end,strand)
        regions.append((chrom,
                        start,
                        end,
                        strand,
                        float(scores[a:b].sum()),
                        end - start + 1,
                        shape_index(scores[a:b]),
                        int(b - a),
                        tsr_id))
        members.extend((X,tsr_id) for X in rows[a:b])

    return regions, members

def _partitions(table):
    positions = table["position"].values.astype(numpy.int64)
    scores    = table["score"].values.astype(float)
    for (chrom, strand), rows in sorted(table.groupby(["chrom","strand"]).indices.items()):
        yield chrom, strand, positions[rows], scores[rows], rows

def cluster_tss_with_membership(table,max_gap=25,min_score=1,processes=1):
    """Cluster TSSs into TSRs, and report which TSR each TSS joined

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        TSS table with columns `chrom`, `position`, `strand`, `score`

    max_gap : int, optional
        Maximum number of bases between consecutive eligible TSSs in the
        same region (Default: `25`)

    min_score : float, optional
        Minimum score for a TSS to join a region (Default: `1`)

    processes : int, optional
        Number of worker processes over which `(chrom, strand)`
        partitions are distributed (Default: `1`, no worker pool)

    Returns
    -------
    :class:`pandas.DataFrame`
        TSR table, ordered by chromosome, strand, and start

    :class:`pandas.Series`
        `tsr_id` for each row of `table` (null for TSSs that joined no region),
        indexed like `table`

    Raises
    ------
    |ConfigurationError|
        if `max_gap` is not a non-negative integer or `min_score` is not a number

    |ColumnNotFoundError|
        if `table` lacks a required column
    """
    _check_parameters(table,max_gap,min_score)
    membership = numpy.full(len(table),numpy.nan,dtype=object)
    if len(table) == 0:
        return empty_tsr_table(), pd.Series(membership,index=table.index,name="tsr_id")

    worker = functools.partial(_cluster_partition,max_gap=max_gap,min_score=min_score)
    partitions = list(_partitions(table))
    if processes > 1 and len(partitions) > 1:
        with multiprocessing.Pool(processes=min(processes,len(partitions))) as pool:
            results = pool.map(worker,partitions,1)
    else:
        results = [worker(X) for X in partitions]

    rows = []
    for regions, members in results:
        rows.extend(regions)
        for pos, tsr_id in members:
            membership[pos] = tsr_id

    membership = pd.Series(membership,index=table.index,name="tsr_id")
    if len(rows) == 0:
        return empty_tsr_table(), membership

    regions = pd.DataFrame.from_records(rows,columns=TSR_COLUMNS)
    return regions, membership

def cluster_tss(table,max_gap=25,min_score=1,processes=1):
    """Cluster TSSs into TSRs. See :func:`cluster_tss_with_membership` for parameters

    Returns
    -------
    :class:`pandas.DataFrame`
        TSR table
    """
    return cluster_tss_with_membership(table,max_gap=max_gap,min_score=min_score,processes=processes)[0]

def _cluster_sample(item,max_gap=25,min_score=1):
    name, table = item
    regions, membership = cluster_tss_with_membership(table,max_gap=max_gap,min_score=min_score)
    return name, regions, membership.values

def cluster_samples(store,max_gap=25,min_score=1,samples="all",processes=1,printer=None):
    """Cluster stored TSSs of each sample into TSRs

    TSR tables are added to `store` as :attr:`DataType.TSR`, and a `tsr_id`
    column recording cluster membership is written to each TSS table.
    Clustering always uses raw scores.

    Parameters
    ----------
    store : |SampleStore|

    max_gap, min_score
        See :func:`cluster_tss_with_membership`

    samples : str or list, optional
        Samples to cluster (Default: `'all'`)

    processes : int, optional
        Number of worker processes over which samples are distributed
        (Default: `1`)

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages
    """
    printer = NullWriter() if printer is None else printer
    tables = store.get_samples(DataType.TSS,samples)
    for table in tables.values():
        _check_parameters(table,max_gap,min_score)

    worker = functools.partial(_cluster_sample,max_gap=max_gap,min_score=min_score)
    printer.write("Clustering TSSs of %s sample(s) with max_gap=%s, min_score=%s ..." % (len(tables),max_gap,min_score))
    if processes > 1 and len(tables) > 1:
        with multiprocessing.Pool(processes=min(processes,len(tables))) as pool:
            results = pool.map(worker,list(tables.items()),1)
    else:
        results = [worker(X) for X in tables.items()]

    regions = OrderedDict()
    for name, tsrs, membership in results:
        printer.write("Found %s TSRs for sample %s." % (len(tsrs),name))
        if len(tsrs) == 0:
            warn("Sample '%s' yielded no TSRs." % name,EmptyResultWarning)
        regions[name] = tsrs
        store.set_columns(DataType.TSS,name,{ "tsr_id" : membership })

    store.add_samples(DataType.TSR,regions)
