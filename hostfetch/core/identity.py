from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class IdentityRecord:
    """
    OS / distribution identity, filled incrementally by the resolver.

    All fields are plain text; "" means not known.
    """

    id: str = ""
    name: str = ""
    pretty_name: str = ""
    version: str = ""
    version_id: str = ""
    codename: str = ""
    id_like: str = ""
    variant: str = ""
    variant_id: str = ""
    build_id: str = ""

    def all_relevant_values_set(self) -> bool:
        return bool(self.id) and bool(self.name) and bool(self.pretty_name)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)
