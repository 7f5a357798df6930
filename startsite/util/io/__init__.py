#!/usr/bin/env python
"""File openers, table readers, and writers for progress messages"""
