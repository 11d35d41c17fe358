"""
Folds the lipid identifications of one experiment into ResultAreaVOs,
one per species (name + double bonds), and tabulates them
"""
import logging
from typing import Iterable, Optional, TYPE_CHECKING

import pandas as pd

from lipidcore.data_structs.result_area import Merged, ResultAreaVO
from lipidcore.utils.config import LipidomicsConstants
from lipidcore.utils.isotopes import ElementTable, IsotopeCalculator

if TYPE_CHECKING:
    from lipidcore.data_structs.lipid_identification import LipidIdentification

# Set up logger for this module
logger = logging.getLogger(__name__)

SpeciesKey = tuple[str, Optional[int]]


def identification_retention_time(
    identification: 'LipidIdentification',
) -> Optional[float]:
    """
    Retention time (minutes) of the strongest zero isotope probe, falling
    back to the identification's rt label
    """
    zero_isotope_probes = (
        identification.peak.isotopic_probes[0]
        if identification.peak.isotopic_probes else []
    )
    if zero_isotope_probes:
        strongest = max(zero_isotope_probes, key=lambda x: x.area)
        return strongest.peak / 60

    try:
        return float(identification.rt)
    except (TypeError, ValueError):
        return None


def identification_experimental_mass(
    identification: 'LipidIdentification',
) -> float:
    """
    Area weighted m/z of the zero isotope probes, or the theoretical m/z
    if no probe carries one
    """
    probes = [
        x for x in (
            identification.peak.isotopic_probes[0]
            if identification.peak.isotopic_probes else []
        )
        if x.mz > 0 and x.area > 0
    ]
    if not probes:
        return identification.mz

    total_area = sum(x.area for x in probes)
    return sum(x.mz * x.area for x in probes) / total_area


def identification_to_result_area_vo(
    identification: 'LipidIdentification',
    exp_name: str,
    neutral_mass: float,
    internal_standard: bool = False,
    external_standard: bool = False,
    constants: Optional[LipidomicsConstants] = None,
) -> ResultAreaVO:
    """
    A ResultAreaVO holding a single identification
    """
    vo = ResultAreaVO(
        name=identification.name,
        double_bonds=identification.double_bonds,
        rt=identification.rt,
        exp_name=exp_name,
        chemical_formula=identification.analyte_formula,
        percental_split=identification.percental_split,
        neutral_mass=neutral_mass,
        internal_standard=internal_standard,
        external_standard=external_standard,
        constants=constants,
    )
    vo.msn_evidence = identification.msn_evidence
    add_identification(vo, identification)
    return vo


def add_identification(
    vo: ResultAreaVO,
    identification: 'LipidIdentification',
):
    """
    Adds the modification, isotope areas and chain information of an
    identification to a ResultAreaVO
    """
    mod = identification.modification_name or ""
    vo.add_result_part(
        mod,
        identification.modification_formula,
        identification.mz,
        identification_experimental_mass(identification),
        identification.charge,
        identification.rt,
    )
    vo.set_retention_time(
        mod,
        identification_retention_time(identification),
    )

    for isotope, probes in enumerate(identification.peak.isotopic_probes):
        insertion = vo.add_area(
            mod,
            isotope,
            sum(x.area for x in probes),
        )
        if isinstance(insertion, Merged):
            logger.warning(
                f"More than one peak for isotope {isotope} of "
                f"{identification.name_plus_mod_human_readable}"
            )

    if identification.chain_combination_areas:
        vo.add_chain_information(
            mod,
            identification.chain_combination_areas,
        )


def build_result_area_vos(
    identifications: Iterable['LipidIdentification'],
    exp_name: str,
    calculator: Optional[IsotopeCalculator] = None,
    internal_standards: Iterable[str] = (),
    external_standards: Iterable[str] = (),
    constants: Optional[LipidomicsConstants] = None,
) -> dict[SpeciesKey, ResultAreaVO]:
    """
    Groups identifications by species. Hits of a species at the same
    retention time label are added to one ResultAreaVO; the ResultAreaVOs
    of other retention times are merged into the first one found.

    :param identifications:
    :param exp_name: Abbreviated name of the experiment
    :param calculator: Used for the neutral masses of the analytes
    :param internal_standards: Names of internal standard species
    :param external_standards: Names of external standard species
    :param constants: Chain separator, neutron mass and element table;
    read from the user config if not given
    :return: (name, double bonds) -> ResultAreaVO
    """
    constants = constants or LipidomicsConstants.load()
    calculator = calculator or IsotopeCalculator(
        ElementTable.from_constants(constants)
    )
    internal_standards = set(internal_standards)
    external_standards = set(external_standards)

    per_rt: dict[tuple[str, Optional[int], Optional[str]], ResultAreaVO] = {}
    for identification in identifications:
        key = (
            identification.name,
            identification.double_bonds,
            identification.rt,
        )
        if key in per_rt:
            add_identification(per_rt[key], identification)
            per_rt[key].msn_evidence |= identification.msn_evidence
            continue

        per_rt[key] = identification_to_result_area_vo(
            identification,
            exp_name=exp_name,
            neutral_mass=calculator.mono_mass(identification.analyte_formula),
            internal_standard=identification.name in internal_standards,
            external_standard=identification.name in external_standards,
            constants=constants,
        )

    results: dict[SpeciesKey, ResultAreaVO] = {}
    for (name, double_bonds, rt), vo in per_rt.items():
        species = (name, double_bonds)
        if species not in results:
            results[species] = vo
            continue

        logger.debug(
            f"Merging {vo.molecule_name} into {results[species].molecule_name}"
        )
        results[species].combine_vos(vo)
        results[species].msn_evidence |= vo.msn_evidence

    return results


def results_to_dataframe(
    vos: Iterable[ResultAreaVO],
    max_isotopes: int,
) -> pd.DataFrame:
    """
    One row per species with its areas summed over ``max_isotopes``
    isotopes and all modifications
    """
    rows = []
    for vo in vos:
        rows.append(
            {
                'species': vo.molecule_name_wo_rt,
                'name': vo.name,
                'double_bonds': vo.double_bonds,
                'experiment': vo.exp_name,
                'rt': vo.rt,
                'modifications': ';'.join(vo.modifications),
                'area': vo.total_area(max_isotopes),
                'more_than_one_peak': any(
                    vo.more_than_one_peak(max_isotopes).values()
                ),
                'strongest_chains': vo.strongest_chain_identification,
                'msn_evidence': vo.msn_evidence,
                'standard': vo.is_a_standard(),
            }
        )

    return pd.DataFrame(
        rows,
        columns=[
            'species', 'name', 'double_bonds', 'experiment', 'rt',
            'modifications', 'area', 'more_than_one_peak',
            'strongest_chains', 'msn_evidence', 'standard',
        ],
    ).set_index('species')


def main(
        identifications: list['LipidIdentification'],
        exp_name: str,
        max_isotopes: int = 2,
        internal_standards: Iterable[str] = (),
        external_standards: Iterable[str] = (),
        constants: Optional[LipidomicsConstants] = None,
        verbose: bool = False,
) -> pd.DataFrame:
    """
    Main entry point for program use

    :param identifications: All identifications of one experiment
    :param exp_name: Abbreviated name of the experiment
    :param max_isotopes: Number of isotopes summed per species
    :param internal_standards:
    :param external_standards:
    :param constants: Defaults to the user config
    :param verbose: Whether to print verbose output
    :return: Summary table, one row per species
    """
    if verbose:
        logger.setLevel(logging.DEBUG)

    logger.info(
        f"Aggregating {len(identifications)} identifications of {exp_name}"
    )
    results = build_result_area_vos(
        identifications,
        exp_name=exp_name,
        internal_standards=internal_standards,
        external_standards=external_standards,
        constants=constants,
    )
    logger.info(
        f"Done ({len(results)} species)"
    )

    return results_to_dataframe(
        results.values(),
        max_isotopes=max_isotopes,
    )
