#!/usr/bin/env python
"""The |SampleStore| holds every sample's TSS, TSR and feature-count tables.

Summary
-------
Tables are kept per |DataType| in two parallel variants:

    ==============   ==========================================================
    **Variant**      **Score semantics**
    --------------   ----------------------------------------------------------
    `raw`            Read counts (or count-derived values, e.g. after
                     G-content correction)
    `normalized`     Counts per million (:term:`CPM`) of the `raw` scores
    ==============   ==========================================================

Both variants always have the same rows in the same order. Columns added after
import (annotation, dominance, cluster membership) are written to both.

Access is copy-on-read: :meth:`SampleStore.get_samples` hands out copies, so
consumers may reshape their tables freely. Writes go through
:meth:`SampleStore.modify`, which works on copies and swaps them in only if the
block completes, so a failing step never leaves a half-written table behind::

    >>> store = SampleStore()
    >>> store.add_samples("tss",{"wt_1" : tss_table})
    >>> with store.modify("tss","wt_1") as (raw, normalized):
    >>>     raw["flag"] = True
    >>>     normalized["flag"] = True

Each (data type, sample) table is guarded by its own |ReadWriteLock|, so
concurrent readers proceed together while writers are serialized.
"""
import copy
import threading
import contextlib
from collections import OrderedDict

import numpy

from startsite.genomics.tables import DataType
from startsite.util.services.exceptions import warn, DataWarning

VARIANTS = ("raw","normalized")


class ReadWriteLock(object):
    """Lock allowing many simultaneous readers or a single writer"""

    def __init__(self):
        self._cond    = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer  = False

    def acquire_read(self):
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            while self._writer or self._readers > 0:
                self._cond.wait()
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextlib.contextmanager
    def reading(self):
        self.acquire_read()
        try:
            yield self
        finally:
            self.release_read()

    @contextlib.contextmanager
    def writing(self):
        self.acquire_write()
        try:
            yield self
        finally:
            self.release_write()


def counts_per_million(table):
    """Return a copy of `table` with `score` scaled to counts per million

    Parameters
    ----------
    table : :class:`pandas.DataFrame`
        Table with a `score` column

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    out = table.copy()
    total = out["score"].sum()
    if total == 0 or numpy.isnan(total):
        out["score"] = 0.0
    else:
        out["score"] = out["score"].astype(float) * 1e6 / total
    return out


class SampleStore(object):
    """Container for all per-sample tables of an experiment

    Parameters
    ----------
    sample_sheet : :class:`pandas.DataFrame`, optional
        Sample metadata with a `sample_name` column, used to build
        designs for differential analysis

    Attributes
    ----------
    sample_sheet : :class:`pandas.DataFrame` or None

    diff_features : dict
        Maps each |DataType| to a dictionary with keys `'model'` (a fitted
        model from a |ModelBackend|) and `'results'` (a dictionary mapping
        comparison names to result tables)
    """

    def __init__(self,sample_sheet=None):
        self.sample_sheet  = sample_sheet
        self._tables       = { X : { V : OrderedDict() for V in VARIANTS } for X in DataType }
        self._locks        = {}
        self._registry     = threading.Lock()
        self.diff_features = { X : { "model" : None, "results" : OrderedDict() } for X in DataType }

    def __repr__(self):
        ltmp = ["%s=%s" % (X.value,len(self._tables[X]["raw"])) for X in DataType if self.has(X)]
        return "<%s %s>" % (self.__class__.__name__," ".join(ltmp))

    def _lock(self,data_type,sample):
        key = (data_type,sample)
        with self._registry:
            if key not in self._locks:
                self._locks[key] = ReadWriteLock()
            return self._locks[key]

    def has(self,data_type):
        """Return `True` if any sample has a table of `data_type`"""
        return len(self._tables[DataType.parse(data_type)]["raw"]) > 0

    def sample_names(self,data_type):
        """Return names of samples with a table of `data_type`, in insertion order

        Returns
        -------
        list
        """
        return list(self._tables[DataType.parse(data_type)]["raw"].keys())

    def resolve_samples(self,data_type,samples):
        """Expand `'all'` or a single name into a list of sample names, checking that each exists

        Raises
        ------
        KeyError
            if a sample has no table of `data_type`, or if `samples` is
            `'all'` and no sample has one
        """
        data_type = DataType.parse(data_type)
        names = self.sample_names(data_type)
        if isinstance(samples,str):
            if samples == "all":
                if len(names) == 0:
                    raise KeyError("No %s data stored for any sample" % data_type.value)
                return names
            samples = [samples]

        missing = [X for X in samples if X not in names]
        if len(missing) > 0:
            raise KeyError("No %s data for sample(s): %s" % (data_type.value,", ".join(missing)))
        return list(samples)

    def add_samples(self,data_type,tables):
        """Store raw tables for one or more samples, and compute their normalized variants

        Parameters
        ----------
        data_type : |DataType| or str

        tables : dict
            Maps sample names to :class:`pandas.DataFrame` objects with
            a `score` column. Copies are stored.
        """
        data_type = DataType.parse(data_type)
        for name, table in tables.items():
            if "score" not in table.columns:
                raise ValueError("Table for sample '%s' has no 'score' column" % name)
            raw = table.reset_index(drop=True)
            with self._lock(data_type,name).writing():
                self._tables[data_type]["raw"][name] = raw.copy()
                self._tables[data_type]["normalized"][name] = counts_per_million(raw)

    def get_samples(self,data_type,samples="all",use_normalized=False):
        """Fetch copies of stored tables

        Parameters
        ----------
        data_type : |DataType| or str

        samples : str or list, optional
            `'all'` (default), a sample name, or a list of sample names

        use_normalized : bool, optional
            If `True`, return CPM-normalized tables (Default: `False`)

        Returns
        -------
        :class:`collections.OrderedDict`
            Sample names mapped to copies of their tables

        Raises
        ------
        KeyError
            if a requested sample has no table of `data_type`
        """
        data_type = DataType.parse(data_type)
        variant = "normalized" if use_normalized else "raw"
        dout = OrderedDict()
        for name in self.resolve_samples(data_type,samples):
            with self._lock(data_type,name).reading():
                dout[name] = self._tables[data_type][variant][name].copy()
        return dout

    @contextlib.contextmanager
    def modify(self,data_type,sample):
        """Context manager yielding working copies `(raw, normalized)` of one sample's tables

        The copies replace the stored tables when the block exits normally.
        If the block raises, the store is left unchanged. Rows must not be
        added, removed or reordered.

        Parameters
        ----------
        data_type : |DataType| or str

        sample : str
            Sample name

        Raises
        ------
        KeyError
            if `sample` has no table of `data_type`

        ValueError
            if the number of rows of either working copy changed
        """
        data_type = DataType.parse(data_type)
        self.resolve_samples(data_type,[sample])
        with self._lock(data_type,sample).writing():
            raw        = self._tables[data_type]["raw"][sample].copy()
            normalized = self._tables[data_type]["normalized"][sample].copy()
            nrows = len(raw)
            yield raw, normalized
            if len(raw) != nrows or len(normalized) != nrows:
                raise ValueError("Rows of %s table for sample '%s' may not be added or removed in place" % (data_type.value,sample))
            self._tables[data_type]["raw"][sample] = raw
            self._tables[data_type]["normalized"][sample] = normalized

    def set_columns(self,data_type,sample,columns):
        """Add or overwrite columns in both variants of one sample's table

        Parameters
        ----------
        data_type : |DataType| or str

        sample : str

        columns : dict
            Maps column names to sequences with one value per row
        """
        with self.modify(data_type,sample) as (raw, normalized):
            for name, values in columns.items():
                values = numpy.asarray(values)
                if len(values) != len(raw):
                    raise ValueError("Column '%s' has %s values for a table of %s rows" % (name,len(values),len(raw)))
                raw[name] = values
                normalized[name] = copy.copy(values)

    def renormalize(self,data_type,samples="all"):
        """Recompute normalized scores from raw scores, keeping all other columns

        Parameters
        ----------
        data_type : |DataType| or str

        samples : str or list, optional
            Samples to renormalize (Default: `'all'`)
        """
        data_type = DataType.parse(data_type)
        for name in self.resolve_samples(data_type,samples):
            with self.modify(data_type,name) as (raw, normalized):
                normalized["score"] = counts_per_million(raw)["score"].values

    def remove_samples(self,data_type,samples):
        """Drop tables of `data_type` for `samples`

        Parameters
        ----------
        data_type : |DataType| or str

        samples : str or list
        """
        data_type = DataType.parse(data_type)
        for name in self.resolve_samples(data_type,samples):
            with self._lock(data_type,name).writing():
                for variant in VARIANTS:
                    del self._tables[data_type][variant][name]

    def check_sample_sheet(self):
        """Warn about stored samples that are missing from the sample sheet"""
        if self.sample_sheet is None:
            return
        known = set(self.sample_sheet["sample_name"])
        for data_type in DataType:
            for name in self.sample_names(data_type):
                if name not in known:
                    warn("Sample '%s' (%s) is not in the sample sheet." % (name,data_type.value),DataWarning)
