from pathlib import Path

from lipidcore.data_structs import (
    LipidIdentification, Probe, ResultAreaVO,
)
from lipidcore.exceptions import SpectrumParseError

import pytest


# PC 34:1 (POPC)
PC_FORMULA = 'C42 H82 N1 O8 P1'
PC_NEUTRAL_MASS = 759.5778


PC_RULE = """[GENERAL]
AmountOfChains=2
ChainLibrary=fattyAcidChains.xlsx
RetentionTimePostprocessing=true

[HEAD]
!FRAGMENTS
Name=NL_PC184\tFormula=P1O4H3\tCharge=1\tMSLevel=2\tmandatory=true
Name=PC164\tFormula=C5H15NO4P\tCharge=1\tMSLevel=2\tmandatory=false
!INTENSITIES
Equation=NL_PC184>0*$BASEPEAK\tmandatory=true
"""

PE_RULE = """[GENERAL]
AmountOfChains=2
RetentionTimePostprocessing=false
"""


class FakeIsotopeCalculator:
    """
    Returns a fixed isotope distribution; formulas listed in
    ``failing`` raise SpectrumParseError
    """
    def __init__(
        self,
        distribution: list[float],
        failing: tuple[str, ...] = (),
        mass: float = PC_NEUTRAL_MASS,
    ):
        self.distribution = distribution
        self.failing = failing
        self.mass = mass
        self.requested: list[str] = []

    def predict(
        self,
        formula: str,
        isotopes_desired: int,
    ) -> list[float]:
        self.requested.append(formula)
        if formula in self.failing:
            raise SpectrumParseError(f"Can't predict {formula}")
        return self.distribution[:isotopes_desired]

    def mono_mass(
        self,
        formula: str,
    ) -> float:
        return self.mass


class FakeRules:
    def __init__(
        self,
        rt_postprocessing: dict[str, bool],
    ):
        self.rt_postprocessing = rt_postprocessing

    def is_rt_postprocessing(
        self,
        rule_name: str,
    ) -> bool:
        return self.rt_postprocessing[rule_name]


@pytest.fixture(autouse=True)
def user_config_dir(tmp_path, monkeypatch) -> Path:
    """
    Keeps the user config of every test in its own directory
    """
    config_dir = tmp_path / 'user_config'
    monkeypatch.setenv('XDG_CONFIG_HOME', str(config_dir))
    monkeypatch.setenv('APPDATA', str(config_dir))
    return config_dir / 'lipidcore'


@pytest.fixture
def rules_dir(tmp_path) -> Path:
    (tmp_path / 'PC_H.frag.txt').write_text(PC_RULE)
    (tmp_path / 'PE_H.frag.txt').write_text(PE_RULE)
    return tmp_path


@pytest.fixture
def result_vo() -> ResultAreaVO:
    return ResultAreaVO(
        name='34',
        double_bonds=1,
        rt='5.0',
        exp_name='exp1',
        chemical_formula=PC_FORMULA,
        percental_split=None,
        neutral_mass=PC_NEUTRAL_MASS,
    )


@pytest.fixture
def identification() -> LipidIdentification:
    identification = LipidIdentification.create(
        mz=760.5851,
        name='34',
        double_bonds=1,
        oh_number=0,
        modification_name='H',
        rt='12.5',
        analyte_formula=PC_FORMULA,
        modification_formula='H1',
        charge=1,
    )
    identification.peak.add_isotopic_probes(
        [
            Probe(isotope_number=0, area=100.0, peak=750.0, mz=760.585),
            Probe(isotope_number=0, area=50.0, peak=748.0, mz=760.587),
        ]
    )
    identification.peak.add_isotopic_probes(
        [
            Probe(isotope_number=1, area=40.0, peak=750.0, mz=761.588),
        ]
    )
    return identification
