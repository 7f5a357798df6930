#!/usr/bin/env python
"""Exceptions, warnings, and small helpers for parsing values"""
