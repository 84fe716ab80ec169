"""Stylesheet rule cache and per-element style resolution.

Pseudo-state styles are resolved statically from stylesheet text: a rule
such as ``.btn:hover`` is filed under ``hover`` with the token stripped, so
``.btn`` can be matched against the element as it is rendered now.

Accumulation is last-match-wins in rule order with inline declarations
overlaid last. Specificity is deliberately not modelled.
"""

from dataclasses import dataclass, field
from typing import Iterable

import structlog
from bs4 import Tag

from .document import DomDocument, match_selector
from .models import RuleRecord

logger = structlog.get_logger(__name__)


@dataclass
class RuleCache:
    """Stylesheet rules partitioned into base and per-pseudo-state buckets."""

    base: list[RuleRecord] = field(default_factory=list)
    pseudo: dict[str, list[RuleRecord]] = field(default_factory=dict)
    skipped_stylesheets: int = 0

    @property
    def rule_count(self) -> int:
        return len(self.base) + sum(len(rules) for rules in self.pseudo.values())


def classify_selector(selector: str, pseudo_states: Iterable[str]) -> str | None:
    """First tracked pseudo-state whose ``:state`` token occurs in ``selector``.

    A selector naming several tracked states is filed under the first one in
    configured order only.
    """
    for state in pseudo_states:
        if f":{state}" in selector:
            return state
    return None


def strip_pseudo_state(selector: str, state: str) -> str:
    """Remove every ``:state`` token from a selector."""
    return selector.replace(f":{state}", "")


def build_rule_cache(document: DomDocument, pseudo_states: Iterable[str]) -> RuleCache:
    """Index every accessible style rule of the document.

    Args:
        document: Document whose stylesheets are scanned.
        pseudo_states: Tracked pseudo-state names, in priority order.

    Returns:
        RuleCache with one (possibly empty) bucket per tracked state.
    """
    states = list(pseudo_states)
    cache = RuleCache(pseudo={state: [] for state in states})

    for sheet in document.stylesheets:
        if sheet.rules is None:
            cache.skipped_stylesheets += 1
            logger.debug("Skipping inaccessible stylesheet", href=sheet.href)
            continue

        for rule in sheet.rules:
            selector = rule.get("selector")
            if not selector:
                continue
            declarations = {prop: value for prop, value in rule.get("declarations", [])}

            state = classify_selector(selector, states)
            if state is None:
                cache.base.append(RuleRecord(selector=selector, declarations=declarations))
            else:
                cache.pseudo[state].append(
                    RuleRecord(selector=strip_pseudo_state(selector, state), declarations=declarations)
                )

    logger.debug(
        "Rule cache built",
        base_rules=len(cache.base),
        pseudo_rules=cache.rule_count - len(cache.base),
        skipped_stylesheets=cache.skipped_stylesheets,
    )
    return cache


class StyleResolver:
    """Resolves which cached declarations apply to an element."""

    def __init__(self, document: DomDocument, rule_cache: RuleCache, pseudo_states: Iterable[str]):
        self.document = document
        self.rule_cache = rule_cache
        self.pseudo_states = list(pseudo_states)

    @staticmethod
    def _accumulate(element: Tag, rules: list[RuleRecord], styles: dict[str, str]) -> dict[str, str]:
        for rule in rules:
            if match_selector(element, rule.selector):
                styles.update(rule.declarations)
        return styles

    def get_applied_styles(self, element: Tag) -> dict[str, str]:
        """Base-rule declarations matching the element, then its inline style."""
        styles = self._accumulate(element, self.rule_cache.base, {})
        for prop, value in self.document.record(element).inline_style:
            styles[prop] = value
        return styles

    def get_pseudo_styles(self, element: Tag) -> dict[str, dict[str, str]]:
        """Declarations per pseudo-state; states with nothing to apply are omitted."""
        pseudo: dict[str, dict[str, str]] = {}
        for state in self.pseudo_states:
            styles = self._accumulate(element, self.rule_cache.pseudo.get(state, []), {})
            if styles:
                pseudo[state] = styles
        return pseudo
