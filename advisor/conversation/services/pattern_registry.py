"""
Service: PatternRegistry

Compiles an ordered table of PatternRule entries once, at construction,
and answers "which rule fired" questions for the validators.
"""

# Python Packages
import re
from typing import Iterable, List, Optional

# Config
from ..config.patterns import PatternRule





class PatternRegistry:

    def __init__(self, rules: Iterable[PatternRule]):
        self.rules = tuple(rules)
        self._compiled = [(rule, re.compile(rule.pattern, rule.flags)) for rule in self.rules]



    def first_match(self, text: str) -> Optional[PatternRule]:
        """ First rule (in registry order) whose pattern occurs in *text*... """

        if not text:
            return None
        for rule, regex in self._compiled:
            if regex.search(text):
                return rule
        return None



    def matching_names(self, text: str) -> List[str]:
        if not text:
            return []
        return [rule.name for rule, regex in self._compiled if regex.search(text)]



    def count_matches(self, text: str) -> int:
        """ Number of distinct rules that match... """

        return len(self.matching_names(text))



    def __len__(self):
        return len(self.rules)
