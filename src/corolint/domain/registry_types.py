from typing import TypedDict


class RuleRegistryEntry(TypedDict, total=False):
    symbol: str
    severity: str
    short_description: str
    manual_instructions: str
    references: list[str]
