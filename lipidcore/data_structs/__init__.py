from .peak_parameters import Probe, PeakParameterSet
from .lipid_identification import LipidIdentification
from .result_area import (
    ResultAreaVO, ModificationResult, Inserted, Merged, AreaInsertion,
)


__all__ = [
    "Probe",
    "PeakParameterSet",
    "LipidIdentification",
    "ResultAreaVO",
    "ModificationResult",
    "Inserted",
    "Merged",
    "AreaInsertion",
]
