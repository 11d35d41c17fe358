import configparser
import os

from lipidcore.utils.config import (
    LipidomicsConstants,
    get_config_path,
    get_default_config_template_path,
    load_config,
    save_config,
)

import pytest


def test_default_template_is_bundled():
    assert get_default_config_template_path().exists()


def test_load_config_copies_default(tmp_path):
    config_path = tmp_path / 'config.ini'

    config = load_config(config_path)

    assert config_path.exists()
    assert config.has_section('lipidomics')
    assert config.has_section('chrom_translation')


@pytest.mark.skipif(os.name == 'nt', reason='APPDATA is used on Windows')
def test_config_path_follows_xdg(tmp_path, monkeypatch):
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path))

    assert get_config_path() == tmp_path / 'lipidcore' / 'config.ini'
    assert (tmp_path / 'lipidcore').is_dir()


def test_saved_config_is_loaded(tmp_path):
    config_path = tmp_path / 'config.ini'
    config = load_config(config_path)
    config['lipidomics']['neutron_mass'] = '1.0'
    config['elements']['symbols'] = 'C H N O P'

    save_config(config, config_path)
    constants = LipidomicsConstants.from_config(load_config(config_path))

    assert constants.neutron_mass == 1.0
    assert constants.element_symbols == ('C', 'H', 'N', 'O', 'P')


def test_bundled_defaults(tmp_path):
    constants = LipidomicsConstants.load(tmp_path / 'config.ini')

    assert constants == LipidomicsConstants()
    assert constants.neutron_mass == pytest.approx(1.00866491595)
    assert constants.chain_combi_separator == '_'
    assert constants.ms2
    assert constants.max_file_size_for_chrom_translation_mb == 1000
    assert constants.element_symbols == ()


def test_missing_settings_fall_back():
    assert LipidomicsConstants.from_config(
        configparser.ConfigParser()
    ) == LipidomicsConstants()


def test_constants_are_read_from_user_config(user_config_dir):
    config = load_config()
    config['lipidomics']['neutron_mass'] = '1.0'
    config['chrom_translation']['max_file_size_mb'] = '5'
    save_config(config)

    constants = LipidomicsConstants.load()

    assert (user_config_dir / 'config.ini').exists()
    assert constants.neutron_mass == 1.0
    assert constants.max_file_size_for_chrom_translation_mb == 5
