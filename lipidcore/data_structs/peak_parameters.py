"""
Dataclasses describing an integrated chromatographic peak and the
probes (per-isotope peak integrations) it consists of
"""
from dataclasses import dataclass, field, replace
from typing import Optional


@dataclass
class Probe:
    """
    One integrated peak of a single isotope
    """
    isotope_number: int
    area: float
    peak: float = 0.0  # retention time of the apex, in seconds
    mz: float = 0.0
    lower_valley: Optional[float] = None
    upper_valley: Optional[float] = None


@dataclass
class PeakParameterSet:
    """
    The quantitative description of a detected analyte: its m/z, name,
    total area, and the probes that were integrated for it
    """
    mz: float
    name: str
    area: float = 0.0
    lower_mz_band: Optional[float] = None
    upper_mz_band: Optional[float] = None
    probes: list[Probe] = field(
        default_factory=list
    )
    # One list of probes per isotope, index == isotope position
    isotopic_probes: list[list[Probe]] = field(
        default_factory=list
    )

    @property
    def probe_count(self) -> int:
        return len(self.probes)

    def add_probe(
        self,
        probe: Probe,
    ):
        self.probes.append(probe)

    def add_isotopic_probes(
        self,
        probes: list[Probe],
    ):
        """
        Appends the probes of the next isotope and adds their area to
        the total area
        """
        self.isotopic_probes.append(probes)
        self.area += sum(x.area for x in probes)

    def copy(self) -> 'PeakParameterSet':
        return PeakParameterSet(
            mz=self.mz,
            name=self.name,
            area=self.area,
            lower_mz_band=self.lower_mz_band,
            upper_mz_band=self.upper_mz_band,
            probes=[replace(x) for x in self.probes],
            isotopic_probes=[
                [replace(x) for x in probes] for probes in self.isotopic_probes
            ],
        )
