# -*- coding: ascii -*-
"""Test package for scaffolder."""

import unittest
import warnings


class CleanLogsTestCase(unittest.TestCase):
    """Base test case that suppresses RDKit logging noise."""

    @classmethod
    def setUpClass(cls):
        """Set up class-level test fixtures - suppress RDKit logging noise."""
        super().setUpClass()

        warnings.filterwarnings("ignore", category=DeprecationWarning, module="rdkit")

        from scaffolder.toolkit import RDLogger
        RDLogger.DisableLog('rdApp.warning')
        RDLogger.DisableLog('rdApp.info')
        RDLogger.DisableLog('rdApp.debug')
        # Keep error and critical levels enabled
