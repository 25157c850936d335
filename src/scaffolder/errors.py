# -*- coding: ascii -*-
"""Exception hierarchy for scaffold decomposition.

Core operations raise these and never catch them; batch harnesses decide
whether to skip the molecule (see guard.decomposition_guard).
"""

from typing import Optional


class ScaffoldError(Exception):
    """Base exception for all scaffold decomposition errors."""

    pass


class ChemistryPerceptionError(ScaffoldError):
    """The toolkit could not assign atom types, valences or aromaticity.

    Attributes:
        smiles: Non-canonical SMILES of the offending graph, when it can be written.
    """

    def __init__(self, message: str, smiles: Optional[str] = None):
        self.smiles = smiles
        if smiles:
            message = f"{message} in: {smiles}"
        super().__init__(message)


class InvariantViolation(ScaffoldError):
    """A ring does not map, by origin index, onto atoms of the given molecule."""

    def __init__(self, message: str, missing: Optional[frozenset] = None):
        self.missing = missing or frozenset()
        if self.missing:
            message = f"{message} (missing origin indices: {sorted(self.missing)})"
        super().__init__(message)


class CloneFailure(ScaffoldError):
    """The toolkit could not duplicate a molecular graph."""

    pass


class ParseFailure(ScaffoldError):
    """An input string could not be parsed into a molecule.

    Attributes:
        text: The input that failed to parse.
    """

    def __init__(self, message: str, text: Optional[str] = None):
        self.text = text
        if text is not None:
            message = f"{message}: {text!r}"
        super().__init__(message)


class ConfigError(ScaffoldError):
    """Invalid configuration value or unreadable configuration file."""

    pass
