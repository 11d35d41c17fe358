"""
Dataclass storing one lipid identification: a detected species/adduct
hit at one retention time
"""
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

import numpy as np

from lipidcore.data_structs.peak_parameters import PeakParameterSet
from lipidcore.utils.formula import combine_formulas
from lipidcore.utils.rules import get_rule_name

if TYPE_CHECKING:
    from lipidcore.interfaces.collaborators import RuleLookup

MOD_SEPARATOR = "_-_"
MOD_SEPARATOR_HR = "_"


def lipid_name_string(
    name: str,
    double_bonds: Optional[int],
    rt: Optional[str] = None,
) -> str:
    """
    e.g. ("34", 1, "12.5") -> "34:1_12.5"
    """
    name_string = name
    if double_bonds is not None and double_bonds > -1:
        name_string += f":{double_bonds}"
    if rt:
        name_string += f"_{rt}"
    return name_string


@dataclass
class LipidIdentification:
    """
    A lipid species detected with one adduct at one retention time.

    The chemical formula of the ion (analyte + modification) and the
    variant that ignores deductions are computed on initialization; a
    FormulaParseError raised there propagates to the caller.
    """
    peak: PeakParameterSet
    double_bonds: Optional[int]
    oh_number: Optional[int]
    modification_name: Optional[str]
    rt: Optional[str]
    analyte_formula: Optional[str]
    modification_formula: Optional[str]
    charge: Optional[int]

    # Set when an isobaric peak is split by retention time
    lower_rt_hard_limit: Optional[float] = None
    upper_rt_hard_limit: Optional[float] = None
    # Percentage (0-100) of a coeluting peak attributed to this hit
    percental_split: Optional[float] = None
    # True when MSn spectra confirmed the identification
    msn_evidence: bool = False
    chose_more_likely_rt_when_equal_msn: bool = False
    # Chain combination name -> area, from the MSn spectra
    chain_combination_areas: dict[str, float] = field(
        default_factory=dict
    )

    # Calculated on initialization
    chemical_formula: Optional[str] = field(init=False)
    chemical_formula_wo_deducts: Optional[str] = field(init=False)

    def __post_init__(self):
        (
            self.chemical_formula,
            self.chemical_formula_wo_deducts,
        ) = combine_formulas(
            self.analyte_formula,
            self.modification_formula,
        )

    @classmethod
    def create(
        cls,
        mz: float,
        name: str,
        double_bonds: Optional[int],
        oh_number: Optional[int],
        modification_name: Optional[str],
        rt: Optional[str],
        analyte_formula: Optional[str],
        modification_formula: Optional[str],
        charge: Optional[int],
    ) -> 'LipidIdentification':
        return cls(
            peak=PeakParameterSet(
                mz=mz,
                name=name,
            ),
            double_bonds=double_bonds,
            oh_number=oh_number,
            modification_name=modification_name,
            rt=rt,
            analyte_formula=analyte_formula,
            modification_formula=modification_formula,
            charge=charge,
        )

    @property
    def name(self) -> str:
        return self.peak.name

    @property
    def mz(self) -> float:
        return self.peak.mz

    @property
    def name_string(self) -> str:
        return lipid_name_string(self.name, self.double_bonds, self.rt)

    @property
    def name_string_without_rt(self) -> str:
        return lipid_name_string(self.name, self.double_bonds)

    @property
    def name_including_modification(self) -> str:
        return f"{self.name_string}{MOD_SEPARATOR}{self.modification_name}"

    @property
    def name_plus_mod_human_readable(self) -> str:
        name = self.name_string
        if self.modification_name:
            name += f"{MOD_SEPARATOR_HR}{self.modification_name}"
        return name

    def set_name_string(
        self,
        name: str,
    ):
        """
        Sets name, double bonds and retention time from a
        "<name>:<double bonds>_<rt>" string
        """
        class_name, _, remainder = name.partition(":")
        double_bonds, _, rt = remainder.partition("_")
        self.peak.name = class_name
        self.double_bonds = int(double_bonds)
        self.rt = rt or None

    def get_area(
        self,
        max_isotope: Optional[int] = None,
    ) -> float:
        """
        Area of the peak, respecting a percental split if one is set

        :param max_isotope: Highest isotope included in the sum. If None,
        the stored total area of the peak is used
        :return:
        """
        if max_isotope is None:
            return self._split_area(np.float32(self.peak.area))

        area = np.float32(0)
        for probes in self.peak.isotopic_probes[:max(max_isotope + 1, 0)]:
            for probe in probes:
                area += np.float32(probe.area)
        return self._split_area(area)

    def _split_area(
        self,
        full_area: np.float32,
    ) -> float:
        if self.percental_split is None:
            return float(full_area)
        return float(
            full_area * np.float32(self.percental_split) / np.float32(100)
        )

    def min_isotope(self) -> int:
        """
        The lowest isotope number of this hit; negative when a peak was
        attributed to an isotope below the monoisotopic mass
        """
        isotope = 0
        if self.peak.probe_count > 0:
            for probe in self.peak.probes:
                isotope = min(isotope, probe.isotope_number)
        else:
            for probes in self.peak.isotopic_probes:
                if probes:
                    isotope = min(isotope, probes[0].isotope_number)
        return isotope

    def is_suitable_for_rt_processing(
        self,
        class_name: str,
        rules: 'RuleLookup',
    ) -> bool:
        """
        True if the confidence in this hit is high enough to use it for
        fitting the retention time prediction curve

        :param class_name: Lipid class, used to look up whether
        RetentionTimePostprocessing is enabled for class and adduct
        :param rules: Rule lookup; may raise RuleLookupError
        :return:
        """
        return (
            self.msn_evidence
            and self.lower_rt_hard_limit is None
            and self.upper_rt_hard_limit is None
            and self.percental_split is None
            and rules.is_rt_postprocessing(
                get_rule_name(class_name, self.modification_name)
            )
        )

    def copy(self) -> 'LipidIdentification':
        """
        Independent copy of this identification, including its probes
        """
        duplicate = LipidIdentification(
            peak=self.peak.copy(),
            double_bonds=self.double_bonds,
            oh_number=self.oh_number,
            modification_name=self.modification_name,
            rt=self.rt,
            analyte_formula=self.analyte_formula,
            modification_formula=self.modification_formula,
            charge=self.charge,
            lower_rt_hard_limit=self.lower_rt_hard_limit,
            upper_rt_hard_limit=self.upper_rt_hard_limit,
            percental_split=self.percental_split,
            msn_evidence=self.msn_evidence,
            chose_more_likely_rt_when_equal_msn=(
                self.chose_more_likely_rt_when_equal_msn
            ),
            chain_combination_areas=dict(self.chain_combination_areas),
        )
        return duplicate

    def __repr__(self):
        return (f"LipidIdentification({self.name_plus_mod_human_readable}, "
                f"mz={self.mz})")
