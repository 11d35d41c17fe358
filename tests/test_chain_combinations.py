from lipidcore.exceptions import ChainEncodingError
from lipidcore.utils.chain_combinations import (
    ChainCombinationCodec, ChainVO, DEFAULT_CODEC,
)

import pytest


def test_permutations_share_canonical_name():
    assert DEFAULT_CODEC.canonical_name('18:1_16:0') == '16:0_18:1'
    assert DEFAULT_CODEC.canonical_name('16:0_18:1') == '16:0_18:1'


def test_positional_separator_is_decoded():
    assert DEFAULT_CODEC.canonical_name('18:1/16:0') == '16:0_18:1'


def test_prefixes_and_oxidations():
    assert DEFAULT_CODEC.canonical_name('P-18:0_16:0') == '16:0_P-18:0'
    assert DEFAULT_CODEC.canonical_name('18:1;O2_16:0') == '16:0_18:1;O2'

    chain = ChainVO.from_string('O-16:0;O')
    assert chain == ChainVO(
        carbons=16, double_bonds=0, oxidations=1, prefix='O-',
    )
    assert str(chain) == 'O-16:0;O'


def test_decode_keeps_order():
    chains = DEFAULT_CODEC.decode('18:1_16:0_20:4')

    assert [str(x) for x in chains] == ['18:1', '16:0', '20:4']


def test_custom_separator():
    codec = ChainCombinationCodec(separator='-')

    assert codec.canonical_name('18:1-16:0') == '16:0-18:1'


@pytest.mark.parametrize('name', ['', 'foo', '16:0__18:1', '16_18:1', '16:x'])
def test_malformed_names_raise(name):
    with pytest.raises(ChainEncodingError):
        DEFAULT_CODEC.decode(name)
