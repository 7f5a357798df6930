#!/usr/bin/env python
"""Read the 5' ends of :term:`read alignments` from `BAM`_ files.

|BAMReadEndReader| walks every alignment in one or more `BAM`_ files and
yields a |ReadEnd| for each that passes its filters. The 5' end of a read on
the plus strand is its leftmost aligned base. On the minus strand it is the
rightmost aligned base::

    >>> reader = BAMReadEndReader("sample_1.bam",min_mapq=10)
    >>> table = aggregate_read_ends(reader)

Unmapped, secondary, supplementary and QC-failed alignments are skipped.
For paired-end data only the first mate is used, since only it carries the
transcript's 5' end.
"""
import pysam

from startsite.genomics.aggregation import ReadEnd


class BAMReadEndReader(object):
    """Iterate over 5' ends of alignments in one or more `BAM`_ files

    Parameters
    ----------
    bamfiles : str or :class:`pysam.AlignmentFile`
        One or more filenames or open alignment files. Files need not be
        indexed, as they are read start to end.

    min_length : int or None, optional
        Minimum aligned length of reads to include (Default: `None`, no minimum)

    max_length : int or None, optional
        Maximum aligned length of reads to include (Default: `None`, no maximum)

    min_mapq : int, optional
        Minimum mapping quality (Default: `0`)

    weight : float, optional
        Weight given to each read (Default: `1.0`)

    Attributes
    ----------
    counter : int
        Number of read ends yielded so far
    """

    def __init__(self,*bamfiles,**kwargs):
        if len(bamfiles) == 1 and isinstance(bamfiles[0],list):
            bamfiles = bamfiles[0]

        self.bamfiles   = [pysam.AlignmentFile(X,"rb") if isinstance(X,str) else X for X in bamfiles]
        self.min_length = kwargs.get("min_length",None)
        self.max_length = kwargs.get("max_length",None)
        self.min_mapq   = kwargs.get("min_mapq",0)
        self.weight     = kwargs.get("weight",1.0)
        self.counter    = 0

    def __repr__(self):
        return "<%s files=%s min_mapq=%s>" % (self.__class__.__name__,len(self.bamfiles),self.min_mapq)

    def lengths(self):
        """Return a dictionary mapping chromosome names to lengths

        Returns
        -------
        dict
        """
        dtmp = {}
        for bamfile in self.bamfiles:
            for k, v in zip(bamfile.references,bamfile.lengths):
                dtmp[k] = max(dtmp.get(k,0),v)
        return dtmp

    def keep(self,read):
        """Return `True` if `read` should be counted

        Parameters
        ----------
        read : :class:`pysam.AlignedSegment`

        Returns
        -------
        bool
        """
        if read.is_unmapped or read.is_secondary or read.is_supplementary or read.is_qcfail:
            return False
        if read.is_paired and not read.is_read1:
            return False
        if read.mapping_quality < self.min_mapq:
            return False

        length = read.query_alignment_length
        if self.min_length is not None and length < self.min_length:
            return False
        if self.max_length is not None and length > self.max_length:
            return False
        return True

    @staticmethod
    def five_prime_end(read):
        """Return the 1-based coordinate and strand of the 5' end of `read`

        Parameters
        ----------
        read : :class:`pysam.AlignedSegment`

        Returns
        -------
        tuple
            `(position, strand)`
        """
        if read.is_reverse:
            # reference_end is 0-based half-open, so it is the 1-based last base
            return read.reference_end, "-"
        return read.reference_start + 1, "+"

    def __iter__(self):
        for bamfile in self.bamfiles:
            for read in bamfile.fetch(until_eof=True):
                if not self.keep(read):
                    continue
                position, strand = self.five_prime_end(read)
                self.counter += 1
                yield ReadEnd(read.reference_name,position,strand,self.weight)

    def close(self):
        """Close all `BAM`_ files"""
        for bamfile in self.bamfiles:
            bamfile.close()
