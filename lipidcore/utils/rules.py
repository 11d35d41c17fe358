"""
Lookup of fragmentation rule settings.

Rules are stored one file per lipid class and adduct, named
``<class>_<adduct>.frag.txt``. Only the ``[GENERAL]`` section is read here;
the fragment definitions below it are left to the MSn identification.
"""
import configparser
import logging
from pathlib import Path
from typing import Optional

from lipidcore.exceptions import NoRuleError, RulesError

logger = logging.getLogger(__name__)

RULE_FILE_SUFFIX = '.frag.txt'
GENERAL_SECTION = 'GENERAL'
RT_POSTPROCESSING_KEY = 'RetentionTimePostprocessing'


def get_rule_name(
    class_name: str,
    modification_name: Optional[str],
) -> str:
    return f"{class_name}_{modification_name or ''}"


class RulesContainer:
    """
    Reads and caches the general settings of rule files in one directory
    """
    def __init__(
        self,
        rules_dir: Path,
    ):
        self.rules_dir = Path(rules_dir)
        self._general_settings: dict[str, configparser.SectionProxy] = {}

    def get_rule_path(
        self,
        rule_name: str,
    ) -> Path:
        return self.rules_dir / f"{rule_name}{RULE_FILE_SUFFIX}"

    def is_rt_postprocessing(
        self,
        rule_name: str,
    ) -> bool:
        """
        Whether hits of this rule may be used to fit the retention time
        model

        :param rule_name: "<class>_<adduct>", see get_rule_name()
        :return:
        """
        general = self._get_general_settings(rule_name)
        try:
            return general.getboolean(
                RT_POSTPROCESSING_KEY,
                fallback=False,
            )
        except ValueError as e:
            raise RulesError(
                f"Invalid {RT_POSTPROCESSING_KEY} value in rule "
                f"'{rule_name}': {e}"
            ) from e

    def _get_general_settings(
        self,
        rule_name: str,
    ) -> configparser.SectionProxy:
        if rule_name in self._general_settings:
            return self._general_settings[rule_name]

        rule_path = self.get_rule_path(rule_name)
        if not rule_path.exists():
            raise NoRuleError(
                f"There is no rule for '{rule_name}'. "
                f"Expected path: {rule_path}"
            )

        parser = configparser.ConfigParser(
            allow_no_value=True,
            strict=False,
            delimiters=('=',),
            comment_prefixes=('#',),
            interpolation=None,
        )
        try:
            with open(rule_path, 'r') as f:
                parser.read_file(f)
        except (OSError, UnicodeDecodeError, configparser.Error) as e:
            raise RulesError(
                f"The rule file {rule_path} can't be read: {e}"
            ) from e

        if not parser.has_section(GENERAL_SECTION):
            raise RulesError(
                f"The rule file {rule_path} has no [{GENERAL_SECTION}] "
                f"section"
            )

        logger.debug(
            f"Loaded rule '{rule_name}' from {rule_path}"
        )
        self._general_settings[rule_name] = parser[GENERAL_SECTION]
        return self._general_settings[rule_name]
