from lipidcore.exceptions import NoRuleError, RuleLookupError, RulesError
from lipidcore.utils.rules import RulesContainer, get_rule_name

import pytest


def test_get_rule_name():
    assert get_rule_name('PC', 'H') == 'PC_H'
    assert get_rule_name('PC', None) == 'PC_'


def test_rt_postprocessing_lookup(rules_dir):
    rules = RulesContainer(rules_dir)

    assert rules.is_rt_postprocessing('PC_H')
    assert not rules.is_rt_postprocessing('PE_H')


def test_missing_setting_defaults_to_false(rules_dir):
    (rules_dir / 'TG_NH4.frag.txt').write_text('[GENERAL]\nAmountOfChains=3\n')

    assert not RulesContainer(rules_dir).is_rt_postprocessing('TG_NH4')


def test_rules_are_cached(rules_dir):
    rules = RulesContainer(rules_dir)
    assert rules.is_rt_postprocessing('PC_H')

    (rules_dir / 'PC_H.frag.txt').unlink()
    assert rules.is_rt_postprocessing('PC_H')


def test_missing_rule_raises(rules_dir):
    with pytest.raises(NoRuleError):
        RulesContainer(rules_dir).is_rt_postprocessing('LPC_Na')

    with pytest.raises(RuleLookupError):
        RulesContainer(rules_dir).is_rt_postprocessing('LPC_Na')


@pytest.mark.parametrize(
    'content',
    [
        'AmountOfChains=2\n',
        '[HEAD]\n!FRAGMENTS\n',
        '[GENERAL]\nRetentionTimePostprocessing=maybe\n',
    ]
)
def test_unparseable_rule_raises(rules_dir, content):
    (rules_dir / 'SM_H.frag.txt').write_text(content)

    with pytest.raises(RulesError):
        RulesContainer(rules_dir).is_rt_postprocessing('SM_H')
