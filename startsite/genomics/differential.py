#!/usr/bin/env python
"""Differential TSS, TSR, or feature usage between groups of samples.

Summary
-------
Model fitting and testing are delegated to a |ModelBackend|, a thin adapter
around an external statistical engine (for example DESeq2 or edgeR, called
through whatever bridge is available). This module prepares the inputs and
normalizes the outputs:

  1. :func:`count_matrix` builds a features x samples matrix of raw counts.
     Features are identified by `chrom:start:end:strand` (or by gene for
     feature counts). Features absent from a sample count 0.

  2. :func:`fit_de_model` checks the sample sheet against the matrix and the
     design formula with :func:`align_sample_sheet`, fits the model, and
     stores it.

  3. :func:`differential_expression` tests one comparison, renames the
     engine's columns to a common schema, marks each feature `up`,
     `unchanged` or `down`, and stores the result table.

Result schema
-------------

    ===============  ===============================  ===============================
    **Column**       **DESeq2-style input**           **edgeR-style input**
    ---------------  -------------------------------  -------------------------------
    `feature`        `feature` or row index           `feature` or row index
    `log2FC`         `log2FoldChange`                 `logFC`
    `pvalue`         `pvalue`                         `PValue`
    `padj`           `padj`                           Benjamini-Hochberg of `PValue`
    `mean_expr`      `baseMean`                       `logCPM`
    ===============  ===============================  ===============================

`lfcSE` (DESeq2) and `F` (edgeR) are dropped. `chrom`, `start`, `end`, and
`strand` are split back out of `feature`, and `de_status` is added.
"""
import re
from abc import ABC, abstractmethod
from collections import OrderedDict

import numpy
import pandas as pd
from scipy.stats import false_discovery_control

from startsite.genomics.tables import DataType, feature_ids, split_feature_ids
from startsite.util.io.openers import NullWriter
from startsite.util.services.exceptions import InputShapeError, ConfigurationError, warn, EmptyResultWarning

DE_STATUS = ("up","unchanged","down")

RESULT_COLUMNS = ["feature","log2FC","pvalue","padj","mean_expr"]

_RENAMES = {
    "deseq2" : { "log2FoldChange" : "log2FC", "baseMean" : "mean_expr" },
    "edger"  : { "logFC" : "log2FC", "PValue" : "pvalue", "logCPM" : "mean_expr" },
}
_DROPS = {
    "deseq2" : ["lfcSE"],
    "edger"  : ["F"],
}


#===============================================================================
# INDEX: inputs
#===============================================================================

def count_matrix(store,data_type,samples="all"):
    """Build a matrix of raw counts with one row per feature and one column per sample

    Parameters
    ----------
    store : |SampleStore|

    data_type : |DataType| or str

    samples : str or list, optional
        Samples to include (Default: `'all'`)

    Returns
    -------
    :class:`pandas.DataFrame`
        Counts, indexed by feature identifier (sorted), with columns in
        sample order. Missing counts are 0.
    """
    data_type = DataType.parse(data_type)
    columns = OrderedDict()
    for name, table in store.get_samples(data_type,samples).items():
        ids = feature_ids(table,data_type)
        columns[name] = pd.Series(table["score"].values,index=ids.values).groupby(level=0).sum()

    if len(columns) == 0:
        return pd.DataFrame()

    matrix = pd.concat(columns,axis=1,join="outer",sort=True).fillna(0)
    matrix.index.name = "feature"
    return matrix

def parse_design(design):
    """Extract variable names from a design formula like `'~ batch + condition'`

    Parameters
    ----------
    design : str or list
        Formula, or a list of variable names

    Returns
    -------
    list
        Variable names, in order of first appearance
    """
    if not isinstance(design,str):
        return list(design)

    terms = re.split(r"[+*:]",design.replace("~"," "))
    names = [X.strip() for X in terms]
    return list(OrderedDict.fromkeys(X for X in names if X not in ("","0","1")))

def align_sample_sheet(sample_sheet,matrix,design):
    """Check a sample sheet against a count matrix and design, and reorder it to match the matrix

    Parameters
    ----------
    sample_sheet : :class:`pandas.DataFrame`
        Must contain a `sample_name` column plus every design variable

    matrix : :class:`pandas.DataFrame`
        Count matrix from :func:`count_matrix`

    design : str or list
        Design formula, see :func:`parse_design`

    Returns
    -------
    :class:`pandas.DataFrame`
        Sample sheet indexed by `sample_name`, rows in the order of
        `matrix`'s columns

    Raises
    ------
    |InputShapeError|
        if fewer than two samples are given, a sample has no sheet entry, or
        a design variable is not a sheet column
    """
    if sample_sheet is None or "sample_name" not in sample_sheet.columns:
        raise InputShapeError("Differential analysis requires a sample sheet with a 'sample_name' column.")
    if matrix.shape[1] < 2:
        raise InputShapeError("Differential analysis requires at least 2 samples. Found %s." % matrix.shape[1])

    sheet = sample_sheet.drop_duplicates("sample_name").set_index("sample_name")
    missing = [X for X in matrix.columns if X not in sheet.index]
    if len(missing) > 0:
        raise InputShapeError("Sample(s) missing from sample sheet: %s" % ", ".join(missing))

    variables = parse_design(design)
    absent = [X for X in variables if X not in sheet.columns]
    if len(absent) > 0:
        raise InputShapeError("Design variable(s) not in sample sheet: %s" % ", ".join(absent))

    return sheet.loc[list(matrix.columns)]


#===============================================================================
# INDEX: model fitting
#===============================================================================

class ModelBackend(ABC):
    """Adapter around an external engine for differential count analysis"""

    @abstractmethod
    def fit(self,counts,sample_sheet,design):
        """Fit a model

        Parameters
        ----------
        counts : :class:`pandas.DataFrame`
            Features x samples count matrix

        sample_sheet : :class:`pandas.DataFrame`
            Indexed by sample name, rows matching `counts` columns

        design : str
            Design formula

        Returns
        -------
        object
            Fitted model, opaque to :data:`startsite`
        """

    @abstractmethod
    def test(self,model,comparison,**kwargs):
        """Test a comparison on a fitted model

        Parameters
        ----------
        model : object
            Model returned by :meth:`fit`

        comparison : object
            Contrast, coefficient name, or other engine-specific comparison

        kwargs : keyword arguments
            Engine-specific options

        Returns
        -------
        :class:`pandas.DataFrame`
            Results using DESeq2-style or edgeR-style column names
        """


def fit_de_model(store,data_type,design,backend,samples="all",printer=None):
    """Fit a differential model to stored counts, and keep it in `store.diff_features`

    Parameters
    ----------
    store : |SampleStore|
        Must have a `sample_sheet`

    data_type : |DataType| or str

    design : str
        Design formula, e.g. `'~ condition'`

    backend : |ModelBackend|

    samples : str or list, optional

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages

    Returns
    -------
    object
        The fitted model
    """
    printer = NullWriter() if printer is None else printer
    data_type = DataType.parse(data_type)
    counts = count_matrix(store,data_type,samples)
    sheet  = align_sample_sheet(store.sample_sheet,counts,design)

    printer.write("Fitting model '%s' to %s features x %s samples ..." % (design,counts.shape[0],counts.shape[1]))
    model = backend.fit(counts,sheet,design)
    store.diff_features[data_type]["model"] = model
    return model

def normalize_results(results):
    """Rename columns of an engine's result table to the common schema

    Parameters
    ----------
    results : :class:`pandas.DataFrame`
        DESeq2-style or edgeR-style results. If there is no `feature`
        column, features are taken from the index.

    Returns
    -------
    :class:`pandas.DataFrame`
        New table with columns :data:`RESULT_COLUMNS` first, followed by any
        other columns the engine reported

    Raises
    ------
    ValueError
        if required columns are missing
    """
    out = results.copy()
    if "feature" not in out.columns:
        out.index.name = "feature"
        out = out.reset_index()

    if "log2FoldChange" in out.columns:
        style = "deseq2"
    elif "logFC" in out.columns:
        style = "edger"
    else:
        style = None

    if style is not None:
        out = out.drop(columns=[X for X in _DROPS[style] if X in out.columns])
        out = out.rename(columns=_RENAMES[style])
        if style == "edger":
            out = out.drop(columns=["padj"],errors="ignore")

    if "padj" not in out.columns and "pvalue" in out.columns:
        padj  = numpy.full(len(out),numpy.nan)
        valid = out["pvalue"].notna().values
        if valid.any():
            padj[valid] = false_discovery_control(out["pvalue"].values[valid].astype(float),method="bh")
        out["padj"] = padj

    missing = [X for X in RESULT_COLUMNS if X not in out.columns]
    if len(missing) > 0:
        raise ValueError("Differential results lack column(s): %s" % ", ".join(missing))

    return out[RESULT_COLUMNS + [X for X in out.columns if X not in RESULT_COLUMNS]]

def mark_de_status(results,log2fc_cutoff=1,fdr_cutoff=0.05):
    """Classify each feature as `up`, `unchanged` or `down`

    A feature is `up` if `padj <= fdr_cutoff` and `log2FC >= log2fc_cutoff`,
    `down` if `padj <= fdr_cutoff` and `log2FC <= -log2fc_cutoff`, and
    `unchanged` otherwise, including when either value is null.

    Parameters
    ----------
    results : :class:`pandas.DataFrame`
        Normalized results. Not modified.

    log2fc_cutoff : float, optional
        Minimum absolute log2 fold change (Default: `1`)

    fdr_cutoff : float, optional
        Maximum adjusted p-value, in `(0,1]` (Default: `0.05`)

    Returns
    -------
    :class:`pandas.DataFrame`
        Copy of `results` with a categorical `de_status` column
    """
    if log2fc_cutoff < 0:
        raise ValueError("log2fc_cutoff must be non-negative. Found %s" % log2fc_cutoff)
    if not 0 < fdr_cutoff <= 1:
        raise ValueError("fdr_cutoff must be in (0,1]. Found %s" % fdr_cutoff)

    out  = results.copy()
    lfc  = out["log2FC"].values.astype(float)
    padj = out["padj"].values.astype(float)
    with numpy.errstate(invalid="ignore"):
        significant = padj <= fdr_cutoff
        status = numpy.where(significant & (lfc >= log2fc_cutoff),"up",
                             numpy.where(significant & (lfc <= -log2fc_cutoff),"down","unchanged"))

    out["de_status"] = pd.Categorical(status,categories=DE_STATUS)
    return out

def differential_expression(store,data_type,comparison_name,comparison,backend,
                            log2fc_cutoff=1,fdr_cutoff=0.05,printer=None,**kwargs):
    """Test a comparison on the stored model and store the normalized result table

    Parameters
    ----------
    store : |SampleStore|
        Must hold a model fit by :func:`fit_de_model` for `data_type`

    data_type : |DataType| or str

    comparison_name : str
        Key under which results are stored

    comparison : object
        Passed to :meth:`ModelBackend.test`

    backend : |ModelBackend|

    log2fc_cutoff, fdr_cutoff : float, optional
        See :func:`mark_de_status`

    printer : file-like, optional
        Something implementing a `write()` method, for progress messages

    kwargs : keyword arguments
        Passed to :meth:`ModelBackend.test`

    Returns
    -------
    :class:`pandas.DataFrame`
        Result table
    """
    printer = NullWriter() if printer is None else printer
    data_type = DataType.parse(data_type)
    model = store.diff_features[data_type]["model"]
    if model is None:
        raise ValueError("No differential model has been fit for %s data. Call fit_de_model() first." % data_type.value)

    printer.write("Testing comparison '%s' ..." % comparison_name)
    results = normalize_results(backend.test(model,comparison,**kwargs))
    coords  = split_feature_ids(results["feature"])
    for column in coords.columns:
        results[column] = coords[column].values

    results = mark_de_status(results,log2fc_cutoff=log2fc_cutoff,fdr_cutoff=fdr_cutoff)
    store.diff_features[data_type]["results"][comparison_name] = results
    return results

def de_table(store,data_type,comparisons="all",de_type=DE_STATUS):
    """Collect stored differential results into a single table

    Parameters
    ----------
    store : |SampleStore|

    data_type : |DataType| or str

    comparisons : str or list, optional
        Comparison names, or `'all'` (default)

    de_type : iterable, optional
        Statuses to keep, among `'up'`, `'unchanged'`, `'down'` (Default: all)

    Returns
    -------
    :class:`pandas.DataFrame`
        Results with a leading `comparison` column
    """
    data_type = DataType.parse(data_type)
    if isinstance(de_type,str):
        de_type = [de_type]
    bad = [X for X in de_type if X not in DE_STATUS]
    if len(bad) > 0:
        raise ConfigurationError("Unknown DE status(es): %s. Choose from: %s" % (", ".join(bad),", ".join(DE_STATUS)))

    stored = store.diff_features[data_type]["results"]
    if isinstance(comparisons,str):
        comparisons = list(stored.keys()) if comparisons == "all" else [comparisons]
    missing = [X for X in comparisons if X not in stored]
    if len(missing) > 0:
        raise KeyError("No differential results for comparison(s): %s" % ", ".join(missing))

    frames = []
    for name in comparisons:
        table = stored[name]
        table = table.loc[table["de_status"].isin(de_type)].copy()
        table.insert(0,"comparison",name)
        frames.append(table)

    if len(frames) == 0:
        warn("No differential results stored for %s data." % data_type.value,EmptyResultWarning)
        return pd.DataFrame(columns=["comparison"] + RESULT_COLUMNS + ["de_status"])

    return pd.concat(frames,ignore_index=True)
