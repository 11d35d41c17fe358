"""
Parsing, rendering and combination of elemental chemical formulas.

Formulas are handled as insertion-ordered ``dict[str, int]`` mappings
(element symbol -> count). Counts may be negative, which is how adducts
that remove atoms (e.g. a lost proton, ``"H-1"``) are written.
"""
import re
import logging
from typing import NamedTuple, Optional, Iterable

from lipidcore.exceptions import FormulaParseError

logger = logging.getLogger(__name__)


ElementalFormula = dict[str, int]

# Periodic table symbols, plus D for deuterium labelled standards
ELEMENT_SYMBOLS: frozenset[str] = frozenset(
    """
    H D He Li Be B C N O F Ne Na Mg Al Si P S Cl Ar K Ca Sc Ti V Cr Mn Fe
    Co Ni Cu Zn Ga Ge As Se Br Kr Rb Sr Y Zr Nb Mo Tc Ru Rh Pd Ag Cd In Sn
    Sb Te I Xe Cs Ba La Ce Pr Nd Pm Sm Eu Gd Tb Dy Ho Er Tm Yb Lu Hf Ta W
    Re Os Ir Pt Au Hg Tl Pb Bi Po At Rn Fr Ra Ac Th Pa U Np Pu Am Cm Bk Cf
    Es Fm Md No Lr Rf Db Sg Bh Hs Mt Ds Rg Cn Nh Fl Mc Lv Ts Og
    """.split()
)

# Sign before the element ("-H1") or in the count ("H-1")
_ELEMENT_TOKEN = re.compile(r"([+-])?([A-Z][a-z]?)([+-]?\d+)?")


class FormulaCombination(NamedTuple):
    formula: Optional[str]
    formula_wo_deducts: Optional[str]


def categorize_formula(
    formula: Optional[str],
    element_symbols: Iterable[str] = ELEMENT_SYMBOLS,
) -> ElementalFormula:
    """
    Splits a formula string into its elements and their counts.

    Accepts space separated (``"C10 H20 O2"``) as well as compact
    (``"C10H20O2"``) notation. Negative counts are written either as
    ``"H-1"`` or with the sign in front of the element (``"Na1-H1"``).
    A symbol without a count counts once; a repeated symbol is summed.

    :param formula: Formula string. None or blank yields an empty formula
    :param element_symbols: Symbols that are accepted
    :return: Element -> count mapping, in order of first appearance
    """
    elements: ElementalFormula = {}
    if not formula:
        return elements

    pos = 0
    while pos < len(formula):
        if formula[pos].isspace():
            pos += 1
            continue

        match = _ELEMENT_TOKEN.match(formula, pos)
        if not match:
            raise FormulaParseError(
                f"Invalid token '{formula[pos:pos + 5]}' in formula "
                f"'{formula}'"
            )

        sign, symbol, amount = match.groups()
        if symbol not in element_symbols:
            raise FormulaParseError(
                f"The element '{symbol}' of formula '{formula}' is unknown"
            )

        count = int(amount) if amount else 1
        if sign == "-":
            count = -count
        elements[symbol] = elements.get(symbol, 0) + count
        pos = match.end()

    return elements


def render_formula(
    elements: ElementalFormula,
) -> str:
    """
    Renders a formula as space separated ``<element><count>`` tokens,
    e.g. ``"C10 H21 Na1"``
    """
    return " ".join(
        f"{element}{amount}" for element, amount in elements.items()
    )


def render_signed_formula(
    elements: ElementalFormula,
) -> str:
    """
    Renders a modification formula with the sign in front of the
    element, e.g. ``"Na1-H1"``
    """
    modification = ""
    for element, amount in elements.items():
        if amount < 0:
            modification += f"-{element}{-amount}"
        else:
            modification += f"{element}{amount}"
    return modification


def combine_formulas(
    analyte_formula: Optional[str],
    modification_formula: Optional[str],
) -> FormulaCombination:
    """
    Adds the formula of an adduct/modification to the analyte formula.

    Returns the combined formula and a variant that ignores deductions:
    when the modification removes atoms of an element the analyte
    contains, the analyte's original count is kept for that element.

    :param analyte_formula: Formula of the neutral analyte
    :param modification_formula: Formula of the adduct/modification
    :return: FormulaCombination(formula, formula_wo_deducts)
    """
    if not modification_formula or len(modification_formula) <= 1:
        return FormulaCombination(
            analyte_formula,
            analyte_formula,
        )

    analyte = categorize_formula(analyte_formula)
    analyte_wo_deducts = dict(analyte)
    modification = categorize_formula(modification_formula)

    for element, amount in modification.items():
        amount_wo_deducts = amount
        if element in analyte:
            amount_wo_deducts = (
                amount + analyte_wo_deducts[element] if amount > 0
                else analyte_wo_deducts[element]
            )
            amount += analyte[element]

        analyte[element] = amount
        if amount_wo_deducts > 0:
            analyte_wo_deducts[element] = amount_wo_deducts

    return FormulaCombination(
        render_formula(analyte),
        render_formula(analyte_wo_deducts),
    )


def carbon_first_formula(
    base: ElementalFormula,
    delta: Optional[ElementalFormula] = None,
) -> str:
    """
    Renders ``base + delta``, with carbon as the first element. Elements
    only present in the delta are appended at the end.
    """
    delta = delta or {}
    elements_order = sorted(
        base,
        key=lambda element: element.upper() != "C",
    )

    combined: ElementalFormula = {}
    for element in elements_order:
        combined[element] = base[element] + delta.get(element, 0)
    for element, amount in delta.items():
        if element not in base:
            combined[element] = amount

    return render_formula(combined)
