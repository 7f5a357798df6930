#!/usr/bin/env python
"""Containers and engines for TSS and TSR analysis.

Package overview
================

    =================================================  ==================================================================
    **Submodule**                                       **Description**
    -------------------------------------------------  ------------------------------------------------------------------
    :py:mod:`~startsite.genomics.tables`                 Column layouts, data types and identifiers shared by all tables

    :py:mod:`~startsite.genomics.sample_store`           Per-sample raw and CPM-normalized tables, with locking

    :py:mod:`~startsite.genomics.aggregation`            Collapse read 5' ends into TSS counts; G-content correction

    :py:mod:`~startsite.genomics.clustering`             Cluster TSSs into TSRs

    :py:mod:`~startsite.genomics.dominance`              Flag the strongest TSS or TSR per TSR or gene

    :py:mod:`~startsite.genomics.annotation`             Assign TSSs and TSRs to nearby annotated transcripts

    :py:mod:`~startsite.genomics.conditioning`           Filter, bin, group and rank tables

    :py:mod:`~startsite.genomics.matrices`               Long-format tables for heatmaps, densities and sequence logos

    :py:mod:`~startsite.genomics.differential`           Differential TSS/TSR usage through a pluggable model backend

    :py:mod:`~startsite.genomics.export`                 Write tables, `bedGraph`_ and `BED`_ files
    =================================================  ==================================================================
"""
