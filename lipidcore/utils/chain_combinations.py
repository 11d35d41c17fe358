"""
Decoding and canonical re-encoding of chain combination names.

A chain combination assigns fatty acyl/alkyl chains to a lipid backbone,
e.g. ``"16:0_18:1"`` or ``"P-18:0/20:4"``. Combinations that only differ
in the order of their chains are the same species when quantified on
MS1 level, so they're reduced to one canonical (sorted) name.
"""
import re
from dataclasses import dataclass

from lipidcore.exceptions import ChainEncodingError

POSITIONAL_SEPARATOR = "/"

_CHAIN_PATTERN = re.compile(
    r"^(?P<prefix>[OP]-)?(?P<carbons>\d+):(?P<double_bonds>\d+)"
    r"(?:;O(?P<oxidations>\d*))?$"
)


@dataclass(frozen=True)
class ChainVO:
    """
    One fatty acyl/alkyl chain
    """
    carbons: int
    double_bonds: int
    oxidations: int = 0
    prefix: str = ""  # '', 'O-' (alkyl ether) or 'P-' (plasmalogen)

    @classmethod
    def from_string(
        cls,
        name: str,
    ) -> 'ChainVO':
        match = _CHAIN_PATTERN.match(name.strip())
        if not match:
            raise ChainEncodingError(
                f"The chain '{name}' can't be decoded"
            )

        oxidations = match.group('oxidations')
        if oxidations is None:
            n_oxidations = 0
        else:
            n_oxidations = int(oxidations) if oxidations else 1

        return cls(
            carbons=int(match.group('carbons')),
            double_bonds=int(match.group('double_bonds')),
            oxidations=n_oxidations,
            prefix=match.group('prefix') or "",
        )

    def sort_key(self) -> tuple[int, int, int, str]:
        return self.carbons, self.double_bonds, self.oxidations, self.prefix

    def __str__(self):
        name = f"{self.prefix}{self.carbons}:{self.double_bonds}"
        if self.oxidations == 1:
            name += ";O"
        elif self.oxidations > 1:
            name += f";O{self.oxidations}"
        return name


@dataclass(frozen=True)
class ChainCombinationCodec:
    """
    Converts between chain combination names and lists of chains
    """
    separator: str = "_"

    def decode(
        self,
        combi_name: str,
    ) -> list[ChainVO]:
        """
        Splits a combination name into its chains, in the given order
        """
        if not combi_name or not combi_name.strip():
            raise ChainEncodingError(
                "An empty chain combination can't be decoded"
            )

        pattern = "|".join(
            re.escape(x) for x in (self.separator, POSITIONAL_SEPARATOR)
        )
        return [
            ChainVO.from_string(x) for x in re.split(pattern, combi_name)
        ]

    def encode(
        self,
        chains: list[ChainVO],
    ) -> str:
        return self.separator.join(str(x) for x in chains)

    @staticmethod
    def sort_chains(
        chains: list[ChainVO],
    ) -> list[ChainVO]:
        return sorted(chains, key=ChainVO.sort_key)

    def canonical_name(
        self,
        combi_name: str,
    ) -> str:
        """
        Order independent name of a chain combination;
        "18:1_16:0" -> "16:0_18:1"
        """
        return self.encode(
            self.sort_chains(self.decode(combi_name))
        )


DEFAULT_CODEC = ChainCombinationCodec()
