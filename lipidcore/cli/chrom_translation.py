"""
Translates raw MS files (.mzXML/.mzML) into chromatograms in a
background thread.

The quantification core never waits on the translation; a driver polls
``ChromTranslationThread.finished`` and reads ``error_string`` once done.
"""
import argparse
import logging
import queue
import threading
import traceback
from pathlib import Path
from typing import Literal, Optional, TYPE_CHECKING

import pyopenms as oms

from lipidcore.utils.config import LipidomicsConstants
from lipidcore.utils.openms import (
    extract_chromatograms,
    load_experiment,
    split_mz_range,
)

if TYPE_CHECKING:
    from lipidcore.interfaces.collaborators import ChromatogramTranslator

# Set up logger for this module
logger = logging.getLogger(__name__)

CHROM_SUFFIX = '.chrom.mzML'


def chrom_translation_pieces(
    filepath: Path,
    max_file_size_mb: int,
) -> int:
    """
    Number of pieces a raw file is split into, so that no piece
    exceeds max_file_size_mb
    """
    max_piece_bytes = max_file_size_mb * 1024 * 1024
    return Path(filepath).stat().st_size // max_piece_bytes + 1


def chrom_output_path(
    filepath: Path,
) -> Path:
    return Path(filepath).with_suffix(CHROM_SUFFIX)


class OpenMSChromatogramTranslator:
    """
    Extracts one XIC per m/z piece (and MS level) with pyopenms and
    stores them next to the raw file as <name>.chrom.mzML
    """
    def __init__(
        self,
        ms2: bool = True,
    ):
        self.ms2 = ms2

    def translate_to_chromatograms(
        self,
        filepath: str,
        pieces: int,
    ) -> None:
        raw_path = Path(filepath)
        exp = load_experiment(raw_path)

        mz_ranges = split_mz_range(exp, pieces)
        ms_levels = (1, 2) if self.ms2 else (1,)

        chroms: list[oms.MSChromatogram] = []
        for ms_level in ms_levels:
            level_chroms = extract_chromatograms(
                exp,
                mz_ranges,
                ms_level=ms_level,
                chrom_type='XIC',
            )
            for i, chrom in enumerate(level_chroms):
                chrom.setNativeID(f"ms{ms_level}_piece{i}")
                chroms.append(chrom)

        out_exp = oms.MSExperiment()
        out_exp.setChromatograms(chroms)
        output_path = chrom_output_path(raw_path)
        oms.MzMLFile().store(
            str(output_path),
            out_exp,
        )
        logger.info(
            f"Stored {len(chroms)} chromatograms to {output_path.name}"
        )


def translate_to_chrom(
    filepath: str,
    translator: 'ChromatogramTranslator',
    max_file_size_mb: int,
) -> None:
    pieces = chrom_translation_pieces(
        Path(filepath),
        max_file_size_mb,
    )
    logger.info(
        f"Translating {Path(filepath).name} in {pieces} piece(s)"
    )
    translator.translate_to_chromatograms(filepath, pieces)


class ChromTranslationThread(
    threading.Thread,
):
    """
    Runs the chromatogram translation of one raw file in a background
    thread. Log records are queued for the polling driver.
    """
    def __init__(
            self,
            filepath: str,
            translator: Optional['ChromatogramTranslator'] = None,
            constants: Optional[LipidomicsConstants] = None,
            log_level: int = logging.INFO,
    ):
        super().__init__()
        self.filepath = str(filepath)
        self.constants = constants or LipidomicsConstants.load()
        self.translator = translator or OpenMSChromatogramTranslator(
            ms2=self.constants.ms2,
        )
        self.status: Literal['ready', 'running', 'completed', 'failed'] = 'ready'
        self.error_string: Optional[str] = None
        self.output_queue: queue.Queue = queue.Queue()
        self.daemon = True  # Allow main program to exit
        self._finished = False

        # Set up a logger for this translation
        self.logger = logging.getLogger(
            f"chrom_translation.{id(self)}"
        )
        self.logger.setLevel(log_level)

        # Handler that puts log messages into queue
        self.queue_handler = QueueLogHandler(
            self.output_queue
        )
        self.logger.addHandler(self.queue_handler)

    @property
    def finished(self) -> bool:
        """
        Non-blocking check whether the translation has ended,
        successfully or not
        """
        return self._finished

    def run(
            self
    ) -> None:
        self.status = "running"
        self.logger.info(
            f"Starting chromatogram translation: {self.filepath}"
        )

        # Route the module's log records into this thread's queue too
        original_handlers = list(logger.handlers)
        logger.addHandler(self.queue_handler)
        try:
            translate_to_chrom(
                self.filepath,
                self.translator,
                self.constants.max_file_size_for_chrom_translation_mb,
            )
            self.status = "completed"
            self.logger.info(
                f"Translation completed: {self.filepath}"
            )
        except Exception as e:
            self.status = "failed"
            self.error_string = f"{type(e).__name__}: {e}"
            self.logger.error(
                f"Error translating {self.filepath}: {e}"
            )
            self.logger.error(
                str(traceback.format_exc())
            )
        finally:
            # Restore original logger configuration
            logger.handlers = original_handlers
            self._finished = True

    def get_all_output(self) -> list[tuple[str, str]]:
        """
        Get all available output, without blocking
        """
        all_output = []
        while True:
            try:
                output = self.output_queue.get_nowait()
                all_output.append(output)
            except queue.Empty:
                break

        return all_output


class QueueLogHandler(logging.Handler):
    """
    A logging handler that puts logs into a queue
    """
    def __init__(
            self,
            output_queue,
    ):
        super().__init__()
        self.output_queue = output_queue

    def emit(
            self,
            record,
    ):
        try:
            # Format the record
            msg = self.format(record)

            # Put in queue with level as first element
            self.output_queue.put(
                (record.levelname.lower(), msg)
            )
        except Exception:
            self.handleError(record)


# This part only runs when the script is executed directly from the CLI
if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Translate a raw .mzXML/.mzML file into chromatograms",
    )
    parser.add_argument(
        "--input-file", "-i",
        required=True,
        help="Path to raw file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    constants = LipidomicsConstants.load()
    translate_to_chrom(
        args.input_file,
        OpenMSChromatogramTranslator(ms2=constants.ms2),
        constants.max_file_size_for_chrom_translation_mb,
    )
