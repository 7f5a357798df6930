#!/usr/bin/env python
"""Flag the highest-scoring :term:`TSS` or :term:`TSR` within each group.

Groups are defined by a key column: `tsr_id` (the TSR each TSS joined during
clustering) or `gene_id` (added by annotation). Within each group, the row with
the greatest score among rows with `score >= threshold` is marked `True`. If
several rows tie at the maximum, the first in the table's current row order
wins, so callers wanting a different tie-break should sort first. A group with
no row passing `threshold` has no dominant row.

Available levels, by data type:

    ==========   =========   ===============   ================
    Data type    Level       Group column      Flag column
    ----------   ---------   ---------------   ----------------
    TSS          `tsr`       `tsr_id`          `dominant_tsr`
    TSS          `gene`      `gene_id`         `dominant_gene`
    TSR          `gene`      `gene_id`         `dominant_gene`
    ==========   =========   ===============   ================
"""
import numpy
import pandas as pd

from startsite.genomics.tables import DataType
from startsite.util.io.openers import NullWriter
from startsite.util.services.exceptions import ConfigurationError, ColumnNotFoundError

DOMINANCE_LEVELS = {
    DataType.TSS : { "tsr"  : ("tsr_id","dominant_tsr"),
                     "gene" : ("gene_id","dominant_gene"),
                   },
    DataType.TSR : { "gene" : ("gene_id","dominant_gene"),
                   },
}
"""Group and flag columns for each combination of |DataType| and dominance level"""


def mark_dominant(table,group_by,threshold=None,column="dominant"):
    """Add a boolean column to `table` flagging the dominant row of each group

    `table` is modified in place; rows are neither added, removed, nor reordered.
    Rows with a null group key or a null score are never dominant.

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Table with a `score` column and the column named by `group_by`

    group_by : str
        Column holding group keys

    threshold : float or None, optional
        Minimum score for a row to be dominant (Default: `None`, no minimum)

    column : str, optional
        Name of the flag column to write (Default: `'dominant'`)

    Returns
    -------
    :class:`pandas.DataFrame`
        `table`, for convenience

    Raises
    ------
    |ColumnNotFoundError|
        if `table` lacks `score` or `group_by`
    """
    for col in ("score",group_by):
        if col not in table.columns:
            raise ColumnNotFoundError(col,table.columns,context="dominance marking")

    flags    = numpy.zeros(len(table),dtype=bool)
    scores   = pd.to_numeric(table["score"]).values.astype(float)
    keys     = table[group_by]
    eligible = keys.notna().values & ~numpy.isnan(scores)
    if threshold is not None:
        eligible &= scores >= threshold

    positions = numpy.flatnonzero(eligible)
    if len(positions) > 0:
        sub = pd.DataFrame({ "key"   : keys.values[positions],
                             "score" : scores[positions],
                           })
        # idxmax returns the first maximal row in row order
        winners = sub.groupby("key",sort=False)["score"].idxmax().values
        flags[positions[winners]] = True

    table[column] = flags
    return table

def mark_dominant_samples(store,data_type,level,threshold=None,samples="all",printer=None):
    """Mark dominant TSSs or TSRs in stored tables

    Dominance is computed from raw scores, and the same flags are written to
    both the raw and normalized variants.

    Parameters
    ----------
    store : |SampleStore|

    data_type : |DataType| or str
        :attr:`DataType.TSS` or :attr:`DataType.TSR`

    level : str
        `'tsr'` or `'gene'`. See :data:`DOMINANCE_LEVELS`

    threshold : float or None, optional
        Minimum raw score for a row to be dominant

    samples : str or list, optional
        Samples to mark (Default: `'all'`)

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages

    Raises
    ------
    |ConfigurationError|
        if `level` is not available for `data_type`
    """
    printer = NullWriter() if printer is None else printer
    data_type = DataType.parse(data_type)
    levels = DOMINANCE_LEVELS.get(data_type,{})
    if level not in levels:
        raise ConfigurationError("Dominance level '%s' is not available for %s data. Choose from: %s" % (level,data_type.value,", ".join(sorted(levels)) or "none"))

    group_by, column = levels[level]
    for name in store.resolve_samples(data_type,samples):
        printer.write("Marking dominant %s per %s for sample %s ..." % (data_type.value,level,name))
        with store.modify(data_type,name) as (raw, normalized):
            mark_dominant(raw,group_by,threshold=threshold,column=column)
            normalized[column] = raw[column].values
