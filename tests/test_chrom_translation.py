import logging
from pathlib import Path

import numpy as np
import pyopenms as oms

from lipidcore.cli.chrom_translation import (
    ChromTranslationThread,
    OpenMSChromatogramTranslator,
    chrom_output_path,
    chrom_translation_pieces,
    translate_to_chrom,
)
from lipidcore.utils.config import LipidomicsConstants

import pytest


class RecordingTranslator:
    def __init__(
        self,
        error: Exception = None,
    ):
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def translate_to_chromatograms(
        self,
        filepath: str,
        pieces: int,
    ) -> None:
        self.calls.append((filepath, pieces))
        if self.error:
            raise self.error


@pytest.fixture
def raw_file(tmp_path) -> Path:
    filepath = tmp_path / 'run.mzXML'
    filepath.write_bytes(b'\0' * (3 * 1024 * 1024))
    return filepath


@pytest.fixture
def mzml_file(tmp_path) -> Path:
    exp = oms.MSExperiment()
    for i, rt in enumerate([60.0, 61.0, 62.0]):
        spectrum = oms.MSSpectrum()
        spectrum.setRT(rt)
        spectrum.setMSLevel(1)
        spectrum.setNativeID(f"scan={i + 1}")
        spectrum.set_peaks(
            (
                np.array([400.0, 600.0, 800.0]),
                np.array([100.0, 200.0, 300.0]),
            )
        )
        exp.addSpectrum(spectrum)

    filepath = tmp_path / 'run.mzML'
    oms.MzMLFile().store(str(filepath), exp)
    return filepath


def _run(thread: ChromTranslationThread) -> ChromTranslationThread:
    assert not thread.finished
    thread.start()
    thread.join(timeout=30)
    return thread


def test_pieces_follow_file_size(raw_file):
    assert chrom_translation_pieces(raw_file, 1) == 4
    assert chrom_translation_pieces(raw_file, 3) == 2
    assert chrom_translation_pieces(raw_file, 1000) == 1


def test_output_path():
    assert chrom_output_path(Path('data/run.mzXML')) == (
        Path('data/run.chrom.mzML')
    )


def test_translate_passes_pieces(raw_file):
    translator = RecordingTranslator()

    translate_to_chrom(str(raw_file), translator, 2)

    assert translator.calls == [(str(raw_file), 2)]


def test_thread_completes(raw_file):
    translator = RecordingTranslator()
    constants = LipidomicsConstants(max_file_size_for_chrom_translation_mb=1)

    thread = _run(
        ChromTranslationThread(
            raw_file,
            translator=translator,
            constants=constants,
        )
    )

    assert thread.finished
    assert thread.status == 'completed'
    assert thread.error_string is None
    assert translator.calls == [(str(raw_file), 4)]

    output = thread.get_all_output()
    assert ('info', f"Translation completed: {raw_file}") in output
    assert thread.get_all_output() == []


def test_thread_reports_translator_error(raw_file):
    thread = _run(
        ChromTranslationThread(
            raw_file,
            translator=RecordingTranslator(RuntimeError('disk full')),
        )
    )

    assert thread.finished
    assert thread.status == 'failed'
    assert thread.error_string == 'RuntimeError: disk full'
    assert any(
        level == 'error' for level, _ in thread.get_all_output()
    )


def test_thread_reports_missing_file(tmp_path):
    translator = RecordingTranslator()
    thread = _run(
        ChromTranslationThread(
            tmp_path / 'missing.mzXML',
            translator=translator,
        )
    )

    assert thread.status == 'failed'
    assert thread.error_string.startswith('FileNotFoundError')
    assert translator.calls == []


def test_thread_restores_module_handlers(raw_file):
    module_logger = logging.getLogger('lipidcore.cli.chrom_translation')
    handlers = list(module_logger.handlers)

    _run(
        ChromTranslationThread(
            raw_file,
            translator=RecordingTranslator(),
        )
    )

    assert module_logger.handlers == handlers


def test_openms_translator_writes_chromatograms(mzml_file):
    OpenMSChromatogramTranslator(ms2=False).translate_to_chromatograms(
        str(mzml_file),
        2,
    )

    output_path = chrom_output_path(mzml_file)
    assert output_path.exists()

    exp = oms.MSExperiment()
    oms.MzMLFile().load(str(output_path), exp)
    chroms = exp.getChromatograms()
    assert [x.getNativeID() for x in chroms] == [
        'ms1_piece0', 'ms1_piece1',
    ]


def test_unsupported_raw_format(tmp_path):
    filepath = tmp_path / 'run.raw'
    filepath.write_bytes(b'\0')

    thread = _run(
        ChromTranslationThread(
            filepath,
            translator=OpenMSChromatogramTranslator(),
        )
    )

    assert thread.status == 'failed'
    assert thread.error_string.startswith('ValueError')
