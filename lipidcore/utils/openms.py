"""
Ergonomic wrappers for working with PyOpenMS
"""
from pathlib import Path
from typing import Literal, Sequence

import numpy as np
import pyopenms as oms

from pyopenms import MSChromatogram


def load_experiment(
    filepath: Path,
) -> oms.MSExperiment:
    """
    Loads an .mzXML or .mzML file into an MSExperiment
    :param filepath:
    :return:
    """
    match filepath.suffix.lower():
        case '.mzxml':
            file_handler = oms.MzXMLFile()
        case '.mzml':
            file_handler = oms.MzMLFile()
        case _:
            raise ValueError(
                f"Unsupported raw file format ({filepath.suffix})"
            )

    exp = oms.MSExperiment()
    file_handler.load(
        str(filepath),
        exp,
    )
    exp.updateRanges()
    return exp


def split_mz_range(
    exp: oms.MSExperiment,
    pieces: int,
) -> list[tuple[float, float]]:
    """
    Splits the m/z range of an experiment into equally wide pieces
    :param exp: MSExperiment with updated ranges
    :param pieces:
    :return: (min m/z, max m/z) of every piece
    """
    bounds = np.linspace(
        exp.getMinMZ(),
        exp.getMaxMZ(),
        pieces + 1,
    )
    return [
        (float(bounds[i]), float(bounds[i + 1])) for i in range(pieces)
    ]


def extract_chromatograms(
    exp: oms.MSExperiment,
    mz_ranges: Sequence[tuple[float, float]],
    ms_level: int = 1,
    chrom_type: Literal['XIC', 'BPC'] = 'XIC',
) -> list[MSChromatogram]:
    """
    Given an MSExperiment, extracts one chromatogram per m/z range over
    the whole retention time range, as summed intensities (XIC) or
    base peaks (BPC)

    :param exp: MSExperiment with updated ranges
    :param mz_ranges: (min m/z, max m/z) pairs
    :param ms_level: Default: 1
    :param chrom_type: 'XIC' or 'BPC'. Default: XIC
    :return: One chromatogram per range, empty if the level has no spectra
    """
    match chrom_type:
        case 'BPC':
            agg = b'max'
        case 'XIC':
            agg = b'sum'
        case _:
            raise ValueError(
                f"Invalid chrom_type argument ({chrom_type})"
            )

    if not mz_ranges:
        return []

    if not any(x.getMSLevel() == ms_level for x in exp.getSpectra()):
        return [MSChromatogram() for _ in mz_ranges]

    min_rt = exp.getMinRT()
    max_rt = exp.getMaxRT()
    ranges_matrix = oms.MatrixDouble.fromNdArray(
        np.array(
            [[min_mz, max_mz, min_rt, max_rt] for min_mz, max_mz in mz_ranges],
            dtype=np.float64,
        )
    )
    return list(
        exp.extractXICsFromMatrix(
            ranges_matrix,
            ms_level,
            agg,
        )
    )
