"""
Exception types raised by the quantification core
"""


class LipidCoreError(Exception):
    """
    Base class for all errors raised by lipidcore
    """


class FormulaParseError(LipidCoreError):
    """
    A chemical formula contains an unknown element or a malformed token
    """


class ChainEncodingError(LipidCoreError):
    """
    A chain combination name can't be decoded into its chains
    """


class RuleLookupError(LipidCoreError):
    """
    A fragmentation rule couldn't be looked up
    """


class NoRuleError(RuleLookupError):
    """
    No rule file exists for the requested class/adduct combination
    """


class RulesError(RuleLookupError):
    """
    A rule file exists but can't be read or parsed
    """


class SpectrumParseError(LipidCoreError):
    """
    Isotope prediction failed because of a malformed formula or missing
    element data
    """


class PreconditionError(LipidCoreError, ValueError):
    """
    An operation was called with arguments that would leave a record in
    an inconsistent state (e.g. an unknown modification name)
    """
