from typing import TypedDict


class RuleRegistryEntry(TypedDict, total=False):
    title: str
    target: list[str]
    severity: str
    summary: str
    guidance: str
    bad_example: str
    good_example: str
    references: list[str]
    heuristic: bool
