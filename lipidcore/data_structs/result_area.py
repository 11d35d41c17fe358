"""
Aggregated quantification result of one analyte species in one
experiment, across all of its adducts/modifications and isotopes
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union, TYPE_CHECKING

import numpy as np

from lipidcore.data_structs.lipid_identification import lipid_name_string
from lipidcore.exceptions import PreconditionError, SpectrumParseError
from lipidcore.utils.chain_combinations import ChainCombinationCodec
from lipidcore.utils.config import LipidomicsConstants
from lipidcore.utils.formula import (
    categorize_formula,
    carbon_first_formula,
    render_formula,
    render_signed_formula,
)

if TYPE_CHECKING:
    from lipidcore.interfaces.collaborators import ChainCodec, IsotopePredictor
    from lipidcore.utils.formula import ElementalFormula

logger = logging.getLogger(__name__)


@dataclass
class ModificationResult:
    """
    Everything known about one adduct/modification of a species.
    ``areas`` and ``more_than_one_peak`` are indexed by isotope number
    """
    formula: 'ElementalFormula'
    mass: float
    exp_mass: float
    charge: int
    retention_time: Optional[float] = None
    areas: list[float] = field(
        default_factory=list
    )
    more_than_one_peak: list[bool] = field(
        default_factory=list
    )
    # Retention time labels of every hit that contributed
    original_rts: set[str] = field(
        default_factory=set
    )


@dataclass(frozen=True)
class Inserted:
    """
    add_area() created a new isotope slot
    """


@dataclass(frozen=True)
class Merged:
    """
    add_area() added to an occupied isotope slot; ``flags`` holds the
    'more than one peak' flag of every isotope after the merge
    """
    flags: dict[int, bool]


AreaInsertion = Union[Inserted, Merged]


def _area_sorted(
    areas: dict[str, float],
) -> dict[str, float]:
    """
    Strongest first; equal areas keep their insertion order
    """
    return dict(
        sorted(areas.items(), key=lambda x: x[1], reverse=True)
    )


class ResultAreaVO:
    """
    Aggregates all hits of one analyte species (name + double bonds)
    within one experiment.

    Areas added to this object are multiplied by the percental split
    once, at insertion.
    """
    def __init__(
        self,
        name: str,
        double_bonds: Optional[int],
        rt: Optional[str],
        exp_name: str,
        chemical_formula: str,
        percental_split: Optional[float],
        neutral_mass: float,
        internal_standard: bool = False,
        external_standard: bool = False,
        constants: Optional[LipidomicsConstants] = None,
        chain_codec: Optional['ChainCodec'] = None,
    ):
        """
        :param name: Name of the analyte
        :param double_bonds: Number of double bonds
        :param rt: Retention time label of the first hit
        :param exp_name: Abbreviated name of the experiment
        :param chemical_formula: Formula of the neutral analyte; raises
        FormulaParseError if it contains unknown elements
        :param percental_split: Percentage (>= 1, e.g. 50 for 50%) of the
        peak intensities belonging to this species. Values < 1 or None
        mean no split
        :param neutral_mass: Theoretical neutral mass of the analyte
        :param internal_standard:
        :param external_standard:
        :param constants: Neutron mass and chain separator; the built-in
        defaults if None
        :param chain_codec: Used to canonicalize chain combination names.
        Defaults to a codec using the configured chain separator
        """
        self.name = name
        self.double_bonds = double_bonds
        self.exp_name = exp_name
        self.rt = rt
        self.rt_original = rt
        self.chemical_formula: 'ElementalFormula' = categorize_formula(
            chemical_formula
        )
        self.neutral_mass = neutral_mass
        self.internal_standard = internal_standard
        self.external_standard = external_standard
        self.msn_evidence = False
        self.constants = constants or LipidomicsConstants()
        self.chain_codec = chain_codec or ChainCombinationCodec(
            separator=self.constants.chain_combi_separator,
        )

        # Percentages are stored as single precision fractions
        self.percental_split = 1.0
        if percental_split is not None and percental_split >= 1:
            self.percental_split = float(
                np.float32(percental_split) / np.float32(100)
            )

        self._modifications: dict[str, ModificationResult] = {}
        self._chain_information: dict[str, dict[str, float]] = {}
        self._chain_information_total: dict[str, float] = {}

    def __repr__(self):
        return (f"ResultAreaVO({self.molecule_name}, {self.exp_name}, "
                f"{len(self._modifications)} modifications)")

    @property
    def molecule_name(self) -> str:
        return lipid_name_string(self.name, self.double_bonds, self.rt)

    @property
    def molecule_name_wo_rt(self) -> str:
        return lipid_name_string(self.name, self.double_bonds)

    @property
    def modifications(self) -> list[str]:
        return list(self._modifications.keys())

    def add_result_part(
        self,
        mod_name: Optional[str],
        mod_formula: Optional[str],
        mass: float,
        exp_mass: float,
        charge: int,
        rt: Optional[str],
    ):
        """
        Adds a hit of another modification of this species. If the
        modification is already known, only the retention time label
        is recorded.

        :param mod_name: Modification/adduct name; None means unmodified
        :param mod_formula: Formula of the modification
        :param mass: Theoretical m/z
        :param exp_mass: Measured m/z
        :param charge: Presumed charge
        :param rt: Retention time label of the hit
        :return:
        """
        mod = mod_name or ""
        if mod not in self._modifications:
            self._modifications[mod] = ModificationResult(
                formula=categorize_formula(mod_formula or ""),
                mass=mass,
                exp_mass=exp_mass,
                charge=charge,
            )

        if rt is not None:
            self._modifications[mod].original_rts.add(rt)

    def add_area(
        self,
        mod_name: Optional[str],
        isotope: int,
        area: float,
    ) -> AreaInsertion:
        """
        Adds the area of one isotope peak. The sign of the isotope
        number is ignored.

        :param mod_name: An already added modification
        :param isotope: Isotope number
        :param area: Raw area; the percental split is applied here
        :return: Inserted if the isotope slot was new, otherwise
        Merged with the current 'more than one peak' flags
        """
        result = self._get_modification(mod_name)
        isotope = abs(isotope)

        if isotope > len(result.areas):
            raise PreconditionError(
                f"Isotope {isotope} of '{mod_name}' can't be added before "
                f"isotope {len(result.areas)}"
            )

        if isotope == len(result.areas):
            result.areas.append(area * self.percental_split)
            result.more_than_one_peak.append(False)
            return Inserted()

        result.areas[isotope] += area * self.percental_split
        result.more_than_one_peak[isotope] = True
        return Merged(
            dict(enumerate(result.more_than_one_peak))
        )

    def total_area(
        self,
        max_isotopes: int,
        mod_name: Optional[str] = None,
    ) -> float:
        """
        Sum of the areas of the first ``max_isotopes`` isotopes, of one
        modification or, if mod_name is None, of all of them
        """
        if mod_name is None:
            return sum(
                self._sum_areas(x.areas, max_isotopes)
                for x in self._modifications.values()
            )

        result = self._modifications.get(mod_name)
        if result is None:
            return 0.0
        return self._sum_areas(result.areas, max_isotopes)

    @staticmethod
    def _sum_areas(
        areas: list[float],
        max_isotopes: int,
    ) -> float:
        total = 0.0
        for area in areas[:max(max_isotopes, 0)]:
            total += area
        return total

    def get_areas(
        self,
        mod_name: str,
    ) -> list[float]:
        return list(self._get_modification(mod_name).areas)

    @property
    def max_isotope(self) -> int:
        """
        Length of the longest isotope area list
        """
        return max(
            (len(x.areas) for x in self._modifications.values()),
            default=0,
        )

    def get_chemical_formula(
        self,
        mod_name: str,
    ) -> str:
        """
        Formula of the analyte plus the modification, carbon first
        """
        result = self._modifications.get(mod_name)
        return carbon_first_formula(
            self.chemical_formula,
            result.formula if result else None,
        )

    @property
    def chemical_formula_base(self) -> str:
        return self.get_chemical_formula("")

    def modification_formula(
        self,
        mod_name: str,
    ) -> str:
        result = self._modifications.get(mod_name)
        if result is None:
            return ""
        return render_signed_formula(result.formula)

    def theoretical_isotope_value(
        self,
        calculator: 'IsotopePredictor',
        isotopes_desired: int,
    ) -> float:
        """
        Total area over ``isotopes_desired`` isotopes, where isotopes
        that weren't measured are extrapolated from the zero isotope
        area and the predicted isotope distribution.

        Modifications whose distribution can't be predicted are skipped.
        """
        total = 0.0
        for mod, result in self._modifications.items():
            formula = self.get_chemical_formula(mod)
            try:
                distribution = calculator.predict(
                    formula,
                    isotopes_desired,
                )
            except SpectrumParseError as e:
                logger.warning(
                    f"Skipping {self.molecule_name} {mod}: {e}"
                )
                continue

            if not result.areas:
                continue

            iso_values: list[float] = []
            for i in range(isotopes_desired):
                if i < len(result.areas):
                    iso_values.append(result.areas[i])
                else:
                    iso_values.append(iso_values[0] * distribution[i])
            total += self._sum_areas(iso_values, isotopes_desired)

        return total

    def weighted_neutral_mass(
        self,
        neutron_mass: Optional[float] = None,
    ) -> list[float]:
        """
        Area weighted neutral mass, for using 1..max_isotope isotopes.
        Isotope i is assumed at neutral_mass + i * neutron_mass.

        :param neutron_mass: Defaults to the configured neutron mass
        :return: One weighted mass per number of isotopes used
        """
        if neutron_mass is None:
            neutron_mass = self.constants.neutron_mass
        weighted_masses = []
        for i in range(self.max_isotope):
            total_area = 0.0
            total_mass_area = 0.0
            for result in self._modifications.values():
                for j, area in enumerate(result.areas[:i + 1]):
                    mass = self.neutral_mass + neutron_mass * j
                    total_area += area
                    total_mass_area += area * mass

            if total_area == 0:
                raise ZeroDivisionError(
                    f"{self.molecule_name} has no area for weighting "
                    f"{i + 1} isotope(s)"
                )
            weighted_masses.append(total_mass_area / total_area)

        return weighted_masses

    def add_chain_information(
        self,
        mod_name: Optional[str],
        areas: dict[str, float],
    ) -> int:
        """
        Adds the areas of chain combinations detected for a modification.
        Permutations of the same chains are summed under one name.

        :param mod_name: The modification the chains were detected for
        :param areas: Chain combination name -> area
        :return: The highest number of chains of any combination
        """
        mod = mod_name or ""
        chain_information = dict(self._chain_information.get(mod, {}))
        chain_information_total = dict(self._chain_information_total)
        n_chains = 0

        for combi_name, area in areas.items():
            name = self.chain_codec.canonical_name(combi_name)
            n_chains = max(
                n_chains,
                len(self.chain_codec.decode(name)),
            )

            chain_information[name] = chain_information.get(name, 0.0) + area
            chain_information_total[name] = (
                chain_information_total.get(name, 0.0) + area
            )

        self._chain_information[mod] = _area_sorted(chain_information)
        self._chain_information_total = _area_sorted(chain_information_total)
        return n_chains

    def chain_information(
        self,
        mod_name: str,
    ) -> dict[str, float]:
        return dict(self._chain_information.get(mod_name, {}))

    @property
    def chain_information_total(self) -> dict[str, float]:
        """
        Chain combination areas summed over all modifications,
        strongest first
        """
        return dict(self._chain_information_total)

    @property
    def strongest_chain_identification(self) -> Optional[str]:
        return next(iter(self._chain_information_total), None)

    def highest_zero_iso_area(
        self,
        mod_name: str,
    ) -> float:
        """
        Zero isotope area of a modification, in single precision
        """
        result = self._modifications.get(mod_name)
        if result is None or not result.areas:
            return 0.0
        return float(np.float32(result.areas[0]))

    def combine_vos(
        self,
        other: 'ResultAreaVO',
    ):
        """
        Merges a result of the same species found at another retention
        time into this one.

        The retention time of a modification is taken over from ``other``
        if its zero isotope area is higher than the one stored here for
        that modification. The representative retention time label is
        taken over if it's higher than the highest zero isotope area of
        any modification here before merging.
        """
        highest_area = 0.0
        for result in self._modifications.values():
            if result.areas and result.areas[0] > highest_area:
                highest_area = result.areas[0]

        for mod, other_result in other._modifications.items():
            highest_zero_area = self.highest_zero_iso_area(mod)
            if mod not in self._modifications:
                self.add_result_part(
                    mod,
                    render_formula(other_result.formula),
                    other_result.mass,
                    other_result.exp_mass,
                    other_result.charge,
                    None,
                )

            for i, area in enumerate(other_result.areas):
                self.add_area(mod, i, area)
                if i == 0 and area > highest_zero_area:
                    self.set_retention_time(mod, other_result.retention_time)
                if i == 0 and area > highest_area:
                    self.set_rt_original(other.rt_original)

            self._modifications[mod].original_rts.update(
                other_result.original_rts
            )

    def get_retention_time(
        self,
        mod_name: Optional[str],
    ) -> Optional[float]:
        return self._get_modification(mod_name).retention_time

    def set_retention_time(
        self,
        mod_name: Optional[str],
        retention_time: Optional[float],
    ):
        self._get_modification(mod_name).retention_time = retention_time

    @property
    def retention_times(self) -> dict[str, Optional[float]]:
        return {
            mod: x.retention_time for mod, x in self._modifications.items()
        }

    def set_rt_original(
        self,
        rt: Optional[str],
    ):
        self.rt_original = rt
        self.rt = rt

    def more_than_one_peak(
        self,
        max_isotopes: int,
    ) -> dict[str, bool]:
        """
        Per modification: whether more than one peak contributed to any
        of the first ``max_isotopes`` isotopes
        """
        return {
            mod: any(x.more_than_one_peak[:max(max_isotopes, 0)])
            for mod, x in self._modifications.items()
        }

    def set_more_than_one_peak(
        self,
        mod_name: str,
        flags: dict[int, bool],
    ):
        result = self._get_modification(mod_name)
        if len(flags) != len(result.areas):
            raise PreconditionError(
                f"Got {len(flags)} flags for {len(result.areas)} isotope "
                f"areas of '{mod_name}'"
            )
        result.more_than_one_peak = [flags[x] for x in sorted(flags)]

    def get_charge(
        self,
        mod_name: str,
    ) -> Optional[int]:
        result = self._modifications.get(mod_name)
        return result.charge if result else None

    def get_theoretical_mass(
        self,
        mod_name: str,
    ) -> Optional[float]:
        result = self._modifications.get(mod_name)
        return result.mass if result else None

    def get_experimental_mass(
        self,
        mod_name: str,
    ) -> Optional[float]:
        result = self._modifications.get(mod_name)
        return result.exp_mass if result else None

    def has_modification(
        self,
        mod_name: str,
    ) -> bool:
        return mod_name in self._modifications

    def contains_all_modifications(
        self,
        mod_names: Iterable[str],
    ) -> bool:
        return all(x in self._modifications for x in mod_names)

    def belongs_rt_to_this_area_vo(
        self,
        rt: str,
        mod_name: str,
    ) -> bool:
        """
        Whether a hit with this retention time label was merged into
        this result
        """
        result = self._modifications.get(mod_name)
        return result is not None and rt in result.original_rts

    def is_a_standard(self) -> bool:
        return self.internal_standard or self.external_standard

    def _get_modification(
        self,
        mod_name: Optional[str],
    ) -> ModificationResult:
        mod = mod_name or ""
        if mod not in self._modifications:
            raise PreconditionError(
                f"{self.molecule_name_wo_rt} has no modification '{mod}'"
            )
        return self._modifications[mod]
