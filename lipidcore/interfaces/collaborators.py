from typing import Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from lipidcore.utils.chain_combinations import ChainVO
    from lipidcore.utils.formula import ElementalFormula


class FormulaParser(Protocol):
    def __call__(
        self,
        formula: Optional[str],
    ) -> 'ElementalFormula':
        """
        Element symbol -> count. Raises FormulaParseError on unknown
        elements or stray characters
        """
        pass


class IsotopePredictor(Protocol):
    def predict(
        self,
        formula: str,
        isotopes_desired: int,
    ) -> list[float]:
        """
        Relative isotope intensities, index 0 normalised to the
        monoisotopic peak. Raises SpectrumParseError on malformed
        formulas or missing element data
        """
        pass


class RuleLookup(Protocol):
    def is_rt_postprocessing(
        self,
        rule_name: str,
    ) -> bool:
        """
        Raises RuleLookupError if no rule exists or it can't be read
        """
        pass


class ChainCodec(Protocol):
    def decode(
        self,
        combi_name: str,
    ) -> list['ChainVO']:
        """
        Raises ChainEncodingError on malformed names
        """
        pass

    def encode(
        self,
        chains: list['ChainVO'],
    ) -> str:
        pass

    def sort_chains(
        self,
        chains: list['ChainVO'],
    ) -> list['ChainVO']:
        pass

    def canonical_name(
        self,
        combi_name: str,
    ) -> str:
        """
        Name shared by all permutations of the same chains
        """
        pass


class ChromatogramTranslator(Protocol):
    def translate_to_chromatograms(
        self,
        filepath: str,
        pieces: int,
    ) -> None:
        """
        Converts a raw file into its chromatogram representation
        """
        pass
