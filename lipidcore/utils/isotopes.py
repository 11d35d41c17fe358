"""
Isotope distribution prediction backed by pyopenms
"""
import logging
from typing import Iterable, Optional, TYPE_CHECKING

import numpy as np
import pyopenms as oms

from lipidcore.exceptions import FormulaParseError, SpectrumParseError
from lipidcore.utils.formula import categorize_formula

if TYPE_CHECKING:
    from lipidcore.interfaces.collaborators import FormulaParser
    from lipidcore.utils.config import LipidomicsConstants
    from lipidcore.utils.formula import ElementalFormula

logger = logging.getLogger(__name__)


class ElementTable:
    """
    The elements available for isotope prediction. Wraps the OpenMS
    element database, optionally restricted to a subset of symbols.
    """
    def __init__(
        self,
        symbols: Optional[Iterable[str]] = None,
    ):
        self._element_db = oms.ElementDB()
        self.symbols: Optional[frozenset[str]] = (
            frozenset(symbols) if symbols else None
        )

    @classmethod
    def from_constants(
        cls,
        constants: 'LipidomicsConstants',
    ) -> 'ElementTable':
        return cls(constants.element_symbols or None)

    def has_element(
        self,
        symbol: str,
    ) -> bool:
        if self.symbols is not None and symbol not in self.symbols:
            return False
        return bool(self._element_db.hasElement(symbol))

    def validate(
        self,
        elements: 'ElementalFormula',
    ):
        """
        Raises SpectrumParseError if any element is missing from the table
        """
        missing = [x for x in elements if not self.has_element(x)]
        if missing:
            raise SpectrumParseError(
                f"No isotope data for element(s): {', '.join(missing)}"
            )


class IsotopeCalculator:
    """
    Predicts relative isotope intensities for chemical formulas
    """
    def __init__(
        self,
        element_table: Optional[ElementTable] = None,
        formula_parser: 'FormulaParser' = categorize_formula,
    ):
        self.element_table = element_table or ElementTable()
        self.formula_parser = formula_parser

    def predict(
        self,
        formula: str,
        isotopes_desired: int,
    ) -> list[float]:
        """
        Relative intensities of the first ``isotopes_desired`` isotope
        peaks, normalised to the monoisotopic peak (index 0 == 1.0)

        :param formula: e.g. "C10 H21 O2"
        :param isotopes_desired: Length of the returned list
        :return:
        """
        if isotopes_desired < 1:
            return []

        empirical_formula = self._to_empirical_formula(formula)
        try:
            distribution = empirical_formula.getIsotopeDistribution(
                oms.CoarseIsotopePatternGenerator(isotopes_desired)
            )
        except RuntimeError as e:
            raise SpectrumParseError(
                f"Isotope prediction failed for '{formula}': {e}"
            ) from e

        intensities = np.zeros(isotopes_desired)
        peaks = [x.getIntensity() for x in distribution.getContainer()]
        n_peaks = min(len(peaks), isotopes_desired)
        intensities[:n_peaks] = peaks[:n_peaks]

        if intensities[0] <= 0:
            raise SpectrumParseError(
                f"Formula '{formula}' has no monoisotopic intensity"
            )

        return list(intensities / intensities[0])

    def mono_mass(
        self,
        formula: str,
    ) -> float:
        """
        Monoisotopic mass of a formula
        """
        return float(
            self._to_empirical_formula(formula).getMonoWeight()
        )

    def _to_empirical_formula(
        self,
        formula: str,
    ) -> oms.EmpiricalFormula:
        try:
            elements = self.formula_parser(formula)
        except FormulaParseError as e:
            raise SpectrumParseError(str(e)) from e

        if not elements:
            raise SpectrumParseError(
                "Can't predict isotopes of an empty formula"
            )

        negative = [x for x, amount in elements.items() if amount < 0]
        if negative:
            raise SpectrumParseError(
                f"Formula '{formula}' has negative element counts: "
                f"{', '.join(negative)}"
            )

        self.element_table.validate(elements)

        compact = "".join(
            f"{element}{amount}"
            for element, amount in elements.items() if amount > 0
        )
        try:
            return oms.EmpiricalFormula(compact)
        except RuntimeError as e:
            raise SpectrumParseError(
                f"OpenMS couldn't parse formula '{formula}': {e}"
            ) from e
