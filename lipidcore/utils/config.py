"""
Utilities for handling config file
"""
import os
import shutil
import configparser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


def get_project_root() -> Path:
    """
    Get the package root directory (where default_config.ini lives)
    :return:
    """
    return Path(__file__).parent.parent  # Depends on where this file is

def get_default_config_template_path() -> Path:
    """
    Get path to default config template in package root
    :return:
    """
    return get_project_root() / 'default_config.ini'

def get_config_path() -> Path:
    """
    Returns platform-appropriate filepath to config file
    :return:
    """
    if os.name == 'nt':  # Windows
        config_dir = Path(
            os.environ.get(
                'APPDATA',
                Path.home()
            )
        )
    else:   # Linux/macOS
        config_dir = Path(
            os.environ.get(
                'XDG_CONFIG_HOME',
                Path.home() / '.config'
            )
        )

    app_config_dir = config_dir / 'lipidcore'
    app_config_dir.mkdir(
        parents=True,
        exist_ok=True,
    )

    return app_config_dir / 'config.ini'

def load_config(
    config_path: Optional[Path] = None,
) -> configparser.ConfigParser:
    """
    Loads a ConfigParser object, creating default if none exist
    :param config_path: Optional explicit path. Defaults to the
    platform-appropriate user config file
    :return:
    """
    config = configparser.ConfigParser()
    config_path = config_path or get_config_path()
    default_config_template_path = get_default_config_template_path()

    if not config_path.exists():
        # Copy default config to user location and load it
        if default_config_template_path.exists():
            shutil.copy2(
                default_config_template_path,
                config_path,
            )
        else:
            raise FileNotFoundError(
                f"Unable to find default configuration template."
                f" Expected path: {default_config_template_path}"
            )

    config.read(config_path)
    return config

def save_config(
    config: configparser.ConfigParser,
    config_path: Optional[Path] = None,
) -> None:
    """
    Saves config to disk
    :param config:
    :param config_path:
    :return:
    """
    config_path = config_path or get_config_path()

    with open(config_path, 'w') as f:
        config.write(f)


@dataclass(frozen=True)
class LipidomicsConstants:
    """
    Numeric and textual settings shared by the quantification core
    """
    neutron_mass: float = 1.00866491595
    chain_combi_separator: str = '_'
    ms2: bool = True
    max_file_size_for_chrom_translation_mb: int = 1000
    element_symbols: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_config(
        cls,
        config: configparser.ConfigParser,
    ) -> 'LipidomicsConstants':
        defaults = cls()
        symbols = config.get(
            'elements', 'symbols', fallback='',
        ).split()

        return cls(
            neutron_mass=config.getfloat(
                'lipidomics', 'neutron_mass',
                fallback=defaults.neutron_mass,
            ),
            chain_combi_separator=config.get(
                'lipidomics', 'chain_combi_separator',
                fallback=defaults.chain_combi_separator,
            ),
            ms2=config.getboolean(
                'lipidomics', 'ms2',
                fallback=defaults.ms2,
            ),
            max_file_size_for_chrom_translation_mb=config.getint(
                'chrom_translation', 'max_file_size_mb',
                fallback=defaults.max_file_size_for_chrom_translation_mb,
            ),
            element_symbols=tuple(symbols),
        )

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
    ) -> 'LipidomicsConstants':
        """
        Constants from the user config file, which is created from the
        bundled default on first use
        """
        return cls.from_config(load_config(config_path))
