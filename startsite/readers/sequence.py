#!/usr/bin/env python
"""Genome sequence sources used for G-content correction and sequence tables.

A |SequenceSource| answers a single query: the bases of a strand-oriented
window of a chromosome. Two implementations are provided:

    ==========================  ==============================================
    **Class**                   **Backing data**
    --------------------------  ----------------------------------------------
    |FastaSequenceSource|       `FASTA`_ (or any format :mod:`Bio.SeqIO`
                                reads), loaded into memory. Also accepts a
                                dictionary of sequences.
    |TwoBitSequenceSource|      `2bit`_ file, read lazily by
                                :class:`twobitreader.TwoBitFile`
    ==========================  ==============================================

Windows extending past either end of a chromosome are clipped, so callers
needing full-length windows must check :meth:`SequenceSource.lengths` first.
"""
from abc import ABC, abstractmethod

from Bio import SeqIO
from Bio.Seq import Seq
from twobitreader import TwoBitFile

from startsite.util.io.openers import opener
from startsite.util.services.exceptions import warn, DataWarning


class SequenceSource(ABC):
    """Base class for genome sequence sources"""

    @abstractmethod
    def lengths(self):
        """Return a dictionary mapping chromosome names to lengths

        Returns
        -------
        dict
        """

    @abstractmethod
    def _get(self,chrom,start,end):
        """Return the forward-strand bases of `chrom` from 0-based `start` to `end` (half-open)

        Returns
        -------
        str
        """

    def fetch(self,chrom,start,length,strand="+"):
        """Fetch a window of sequence

        Parameters
        ----------
        chrom : str
            Chromosome name

        start : int
            1-based coordinate of the leftmost base of the window

        length : int
            Number of bases

        strand : str, optional
            If `'-'`, the reverse complement is returned (Default: `'+'`)

        Returns
        -------
        str
            Upper-case bases, clipped to the chromosome. Empty if `chrom`
            is unknown.
        """
        chrom_length = self.lengths().get(chrom)
        if chrom_length is None:
            warn("Chromosome '%s' not found in sequence source. Returning empty sequence." % chrom,DataWarning)
            return ""

        left  = max(0,start - 1)
        right = min(chrom_length,start - 1 + length)
        if right <= left:
            return ""

        seq = str(self._get(chrom,left,right)).upper()
        if strand == "-":
            seq = str(Seq(seq).reverse_complement())
        return seq


class FastaSequenceSource(SequenceSource):
    """|SequenceSource| held in memory

    Parameters
    ----------
    sequences : str or dict
        Filename of a sequence file (optionally gzipped or bzipped), or a
        dictionary mapping chromosome names to strings or
        :class:`Bio.SeqRecord.SeqRecord` objects

    sequence_format : str, optional
        Format passed to :func:`Bio.SeqIO.parse` (Default: `'fasta'`)
    """

    def __init__(self,sequences,sequence_format="fasta"):
        if isinstance(sequences,str):
            with opener(sequences) as fh:
                sequences = SeqIO.to_dict(SeqIO.parse(fh,sequence_format))

        self._seqs = { K : str(getattr(V,"seq",V)) for K, V in sequences.items() }
        self._lengths = { K : len(V) for K, V in self._seqs.items() }

    def __repr__(self):
        return "<%s chroms=%s>" % (self.__class__.__name__,len(self._seqs))

    def lengths(self):
        return self._lengths

    def _get(self,chrom,start,end):
        return self._seqs[chrom][start:end]


class TwoBitSequenceSource(SequenceSource):
    """|SequenceSource| backed by a `2bit`_ file

    Parameters
    ----------
    filename : str
        Path to `2bit`_ file
    """

    def __init__(self,filename):
        self.twobitfile = TwoBitFile(filename)
        self._lengths   = { K : int(V) for K, V in self.twobitfile.sequence_sizes().items() }

    def __repr__(self):
        return "<%s chroms=%s>" % (self.__class__.__name__,len(self._lengths))

    def lengths(self):
        return self._lengths

    def _get(self,chrom,start,end):
        return self.twobitfile[chrom][start:end]


def open_sequence_source(filename,sequence_format="fasta"):
    """Open a |SequenceSource| appropriate for `sequence_format`

    Parameters
    ----------
    filename : str

    sequence_format : str, optional
        `'twobit'`, or any format understood by :mod:`Bio.SeqIO` (Default: `'fasta'`)

    Returns
    -------
    |SequenceSource|
    """
    if sequence_format == "twobit":
        return TwoBitSequenceSource(filename)
    return FastaSequenceSource(filename,sequence_format=sequence_format)
